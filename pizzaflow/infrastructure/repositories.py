"""
Camada de Infraestrutura: Implementação dos Repositórios com o Django ORM.

Esta camada traduz as operações abstratas definidas nas Portas do Core
em chamadas concretas ao framework.
"""
import logging
from datetime import datetime
from typing import List, Optional

from django.apps import apps
from django.db import transaction
from django.db.models import Q, F, ProtectedError
from django.db.utils import IntegrityError
from django.utils import timezone

# Importações da Camada CORE (ENTIDADES e INTERFACES)
from pizzaflow.core.entities import ItemCardapio, Cupom, Entregador, Pedido, StatusPedido
from pizzaflow.core.ports import (
    IItemCardapioRepository,
    ICupomRepository,
    IEntregadorRepository,
    IPedidoRepository,
)
from pizzaflow.core.exceptions import (
    DadosInvalidosError,
    PedidoNaoEncontradoError,
    ExclusaoBloqueadaError,
    CupomEsgotadoError,
    CodigoCupomDuplicadoError,
)

from .mappers import ItemCardapioMapper, CupomMapper, EntregadorMapper, ItemPedidoMapper, PedidoMapper

logger = logging.getLogger(__name__)


# Helper para Lazy Loading
def get_model(app_label, model_name):
    """Busca o modelo Django de forma segura (Lazy Loading)."""
    return apps.get_model(app_label, model_name)


# ====================================================================
# 1. CARDÁPIO
# ====================================================================

class ItemCardapioRepositoryDjango(IItemCardapioRepository):
    """Implementação do repositório do cardápio usando o Django ORM."""

    # Propriedades para carregar modelos de forma LAZY
    @property
    def ItemCardapioModel(self):
        return get_model('cardapio', 'ItemCardapio')

    @property
    def ItemPedidoModel(self):
        return get_model('pedidos', 'ItemPedido')

    def buscar_por_id(self, item_id: str) -> Optional[ItemCardapio]:
        try:
            return ItemCardapioMapper.to_entity(self.ItemCardapioModel.objects.get(pk=item_id))
        except self.ItemCardapioModel.DoesNotExist:
            return None

    def listar_todos(self) -> List[ItemCardapio]:
        qs = self.ItemCardapioModel.objects.order_by('categoria', 'nome')
        return [ItemCardapioMapper.to_entity(model) for model in qs]

    @transaction.atomic
    def salvar(self, item: ItemCardapio) -> ItemCardapio:
        """Cria ou atualiza o item, convertendo a entidade para o modelo."""
        model = self.ItemCardapioModel.objects.filter(pk=item.id).first()
        model = ItemCardapioMapper.to_model(item, model)
        model.save()
        return ItemCardapioMapper.to_entity(model)

    def contar_referencias(self, item_id: str) -> int:
        return self.ItemPedidoModel.objects.filter(item_cardapio_id=item_id).count()

    def deletar(self, item_id: str) -> bool:
        try:
            with transaction.atomic():
                apagados, _ = self.ItemCardapioModel.objects.filter(pk=item_id).delete()
        except ProtectedError as e:
            # Corrida entre a contagem de referências e a exclusão
            raise ExclusaoBloqueadaError(item_id, len(e.protected_objects))
        return apagados > 0


# ====================================================================
# 2. CUPONS
# ====================================================================

class CupomRepositoryDjango(ICupomRepository):
    """Implementação do repositório de cupons usando o Django ORM."""

    @property
    def CupomModel(self):
        return get_model('cupons', 'Cupom')

    def buscar_por_id(self, cupom_id: str) -> Optional[Cupom]:
        try:
            return CupomMapper.to_entity(self.CupomModel.objects.get(pk=cupom_id))
        except self.CupomModel.DoesNotExist:
            return None

    def buscar_por_codigo(self, codigo: str) -> Optional[Cupom]:
        # Comparação exata: o código do cupom diferencia maiúsculas de minúsculas.
        return CupomMapper.to_entity(self.CupomModel.objects.filter(codigo=codigo).first())

    def listar_todos(self) -> List[Cupom]:
        return [CupomMapper.to_entity(model) for model in self.CupomModel.objects.order_by('-criado_em')]

    def salvar(self, cupom: Cupom) -> Cupom:
        if self.CupomModel.objects.filter(codigo=cupom.codigo).exclude(pk=cupom.id).exists():
            raise CodigoCupomDuplicadoError(cupom.codigo)
        try:
            with transaction.atomic():
                model = self.CupomModel.objects.filter(pk=cupom.id).first()
                model = CupomMapper.to_model(cupom, model)
                model.save()
        except IntegrityError:
            raise CodigoCupomDuplicadoError(cupom.codigo)
        return CupomMapper.to_entity(model)

    def incrementar_uso(self, cupom_id: str) -> bool:
        """
        UPDATE condicional: o banco só incrementa se ainda houver usos disponíveis.
        Zero linhas afetadas significa que o cupom esgotou.
        """
        atualizados = (
            self.CupomModel.objects
            .filter(pk=cupom_id)
            .filter(Q(limite_uso__isnull=True) | Q(vezes_usado__lt=F('limite_uso')))
            .update(vezes_usado=F('vezes_usado') + 1, atualizado_em=timezone.now())
        )
        return atualizados == 1


# ====================================================================
# 3. ENTREGADORES
# ====================================================================

class EntregadorRepositoryDjango(IEntregadorRepository):

    @property
    def EntregadorModel(self):
        return get_model('entregas', 'Entregador')

    def buscar_por_id(self, entregador_id: str) -> Optional[Entregador]:
        try:
            return EntregadorMapper.to_entity(self.EntregadorModel.objects.get(pk=entregador_id))
        except self.EntregadorModel.DoesNotExist:
            return None

    def listar_todos(self, apenas_ativos: bool = False) -> List[Entregador]:
        qs = self.EntregadorModel.objects.all()
        if apenas_ativos:
            qs = qs.filter(ativo=True)
        return [EntregadorMapper.to_entity(model) for model in qs.order_by('nome')]

    @transaction.atomic
    def salvar(self, entregador: Entregador) -> Entregador:
        model = self.EntregadorModel.objects.filter(pk=entregador.id).first()
        model = EntregadorMapper.to_model(entregador, model)
        model.save()
        return EntregadorMapper.to_entity(model)

    def deletar(self, entregador_id: str) -> bool:
        apagados, _ = self.EntregadorModel.objects.filter(pk=entregador_id).delete()
        return apagados > 0


# ====================================================================
# 4. PEDIDOS
# ====================================================================

class PedidoRepositoryDjango(IPedidoRepository):
    """Implementação do repositório de pedidos usando o Django ORM."""

    def __init__(self, cupom_repo: Optional[CupomRepositoryDjango] = None):
        self.cupom_repo = cupom_repo or CupomRepositoryDjango()

    @property
    def PedidoModel(self):
        return get_model('pedidos', 'Pedido')

    @property
    def ItemPedidoModel(self):
        return get_model('pedidos', 'ItemPedido')

    def _queryset(self):
        return self.PedidoModel.objects.prefetch_related('itens')

    def buscar_por_id(self, pedido_id: str) -> Optional[Pedido]:
        try:
            return PedidoMapper.to_entity(self._queryset().get(pk=pedido_id))
        except self.PedidoModel.DoesNotExist:
            return None

    def listar_todos(self, status: Optional[str] = None) -> List[Pedido]:
        """Lista todos os pedidos, opcionalmente filtrados por status."""
        qs = self._queryset()
        if status:
            qs = qs.filter(status=status)
        return [PedidoMapper.to_entity(model) for model in qs.order_by('-criado_em')]

    def listar_por_periodo(self, inicio: datetime, fim: datetime) -> List[Pedido]:
        qs = self._queryset().filter(criado_em__gte=inicio, criado_em__lt=fim).order_by('-criado_em')
        return [PedidoMapper.to_entity(model) for model in qs]

    def criar_pedido(self, pedido: Pedido) -> Pedido:
        """
        Pedido, itens e uso do cupom em uma única transação. O incremento do
        cupom vem depois das inserções; se falhar, nada é gravado.
        """
        try:
            with transaction.atomic():
                model = PedidoMapper.to_model(pedido)
                model.save(force_insert=True)

                self.ItemPedidoModel.objects.bulk_create([
                    ItemPedidoMapper.to_model(item, pedido_id=model.id)
                    for item in pedido.itens
                ])

                if pedido.cupom_id and not self.cupom_repo.incrementar_uso(pedido.cupom_id):
                    raise CupomEsgotadoError(pedido.cupom_id)
        except IntegrityError as e:
            logger.error("Falha de integridade ao gravar o pedido %s: %s", pedido.id_exibicao, e)
            raise DadosInvalidosError(f"Não foi possível registrar o pedido: {e}")

        return self.buscar_por_id(model.id)

    @transaction.atomic
    def salvar(self, pedido: Pedido) -> Pedido:
        """Atualiza um pedido existente (último a escrever vence)."""
        try:
            model = self.PedidoModel.objects.get(pk=pedido.id)
        except self.PedidoModel.DoesNotExist:
            raise PedidoNaoEncontradoError(f"Pedido ID {pedido.id} não existe para atualização.")

        model = PedidoMapper.to_model(pedido, model)
        model.save()
        return self.buscar_por_id(model.id)

    def contar_ativos_por_entregador(self, entregador_id: str) -> int:
        return (
            self.PedidoModel.objects
            .filter(entregador_cadastro_id=entregador_id)
            .exclude(status__in=StatusPedido.TERMINAIS)
            .count()
        )
