"""
Mapeadores (Mappers) para converter entre:
1. Modelos do Django ORM
2. Entidades de Domínio (pizzaflow.core.entities)
"""
from typing import Any, Optional, Type
from django.db import models
from django.apps import apps

# Importa as entidades do Core
from pizzaflow.core.entities import (
    ItemCardapio as ItemCardapioEntity,
    Cupom as CupomEntity,
    Entregador as EntregadorEntity,
    Pedido as PedidoEntity,
    ItemPedido as ItemPedidoEntity,
)


# ====================================================================
# Uso de apps.get_model para evitar dependências circulares
# ====================================================================

def get_model(app_label: str, model_name: str):
    """Retorna um modelo do Django de forma segura (lazy loading)."""
    return apps.get_model(app_label, model_name)


class BaseMapper:

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        raise NotImplementedError

    @classmethod
    def novo_model(cls, entity) -> Any:
        return cls.model_class()(id=entity.id)


# ====================================================================
# MAPPER DO CARDÁPIO
# ====================================================================

class ItemCardapioMapper(BaseMapper):

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('cardapio', 'ItemCardapio')

    @staticmethod
    def to_entity(model: Any) -> Optional[ItemCardapioEntity]:
        """Converte ItemCardapio Model para ItemCardapio Entity."""
        if not model: return None
        return ItemCardapioEntity(
            id=model.id,
            nome=model.nome,
            preco=model.preco,
            categoria=model.categoria,
            descricao=model.descricao,
            url_imagem=model.url_imagem,
            em_promocao=model.em_promocao,
            dica_ia=model.dica_ia,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )

    @classmethod
    def to_model(cls, entity: ItemCardapioEntity, model: Optional[Any] = None) -> Any:
        if not model:
            model = cls.novo_model(entity)
            model.criado_em = entity.criado_em

        model.nome = entity.nome
        model.preco = entity.preco
        model.categoria = entity.categoria
        model.descricao = entity.descricao
        model.url_imagem = entity.url_imagem
        model.em_promocao = entity.em_promocao
        model.dica_ia = entity.dica_ia
        model.atualizado_em = entity.atualizado_em or entity.criado_em
        return model


# ====================================================================
# MAPPERS DE CUPOM E ENTREGADOR
# ====================================================================

class CupomMapper(BaseMapper):

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('cupons', 'Cupom')

    @staticmethod
    def to_entity(model: Any) -> Optional[CupomEntity]:
        if not model: return None
        return CupomEntity(
            id=model.id,
            codigo=model.codigo,
            descricao=model.descricao,
            tipo_desconto=model.tipo_desconto,
            valor_desconto=model.valor_desconto,
            ativo=model.ativo,
            expira_em=model.expira_em,
            limite_uso=model.limite_uso,
            vezes_usado=model.vezes_usado,
            valor_minimo_pedido=model.valor_minimo_pedido,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )

    @classmethod
    def to_model(cls, entity: CupomEntity, model: Optional[Any] = None) -> Any:
        """
        Converte Cupom Entity para Cupom Model. `vezes_usado` só é copiado em
        registros novos: o contador pertence ao update condicional do repositório.
        """
        if not model:
            model = cls.novo_model(entity)
            model.criado_em = entity.criado_em
            model.vezes_usado = entity.vezes_usado

        model.codigo = entity.codigo
        model.descricao = entity.descricao
        model.tipo_desconto = entity.tipo_desconto
        model.valor_desconto = entity.valor_desconto
        model.ativo = entity.ativo
        model.expira_em = entity.expira_em
        model.limite_uso = entity.limite_uso
        model.valor_minimo_pedido = entity.valor_minimo_pedido
        model.atualizado_em = entity.atualizado_em or entity.criado_em
        return model


class EntregadorMapper(BaseMapper):

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('entregas', 'Entregador')

    @staticmethod
    def to_entity(model: Any) -> Optional[EntregadorEntity]:
        if not model: return None
        return EntregadorEntity(
            id=model.id,
            nome=model.nome,
            detalhes_veiculo=model.detalhes_veiculo,
            placa=model.placa,
            ativo=model.ativo,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
        )

    @classmethod
    def to_model(cls, entity: EntregadorEntity, model: Optional[Any] = None) -> Any:
        if not model:
            model = cls.novo_model(entity)
            model.criado_em = entity.criado_em

        model.nome = entity.nome
        model.detalhes_veiculo = entity.detalhes_veiculo
        model.placa = entity.placa
        model.ativo = entity.ativo
        model.atualizado_em = entity.atualizado_em or entity.criado_em
        return model


# ====================================================================
# MAPPERS DE PEDIDO
# ====================================================================

class ItemPedidoMapper(BaseMapper):
    """Mapeador para ItemPedido."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('pedidos', 'ItemPedido')

    @staticmethod
    def to_entity(model: Any) -> Optional[ItemPedidoEntity]:
        """Converte ItemPedido Model para ItemPedido Entity."""
        if not model: return None
        return ItemPedidoEntity(
            id=model.id,
            pedido_id=model.pedido_id,
            item_cardapio_id=model.item_cardapio_id,
            nome=model.nome,
            preco=model.preco,
            quantidade=model.quantidade,
            observacoes_item=model.observacoes_item,
        )

    @classmethod
    def to_model(cls, entity: ItemPedidoEntity, pedido_id: str) -> Any:
        """Itens são imutáveis: só existe conversão para registros novos."""
        # Snapshot dos dados, não dependem do estado atual do cardápio
        return cls.model_class()(
            id=entity.id,
            pedido_id=pedido_id,
            item_cardapio_id=entity.item_cardapio_id,
            nome=entity.nome,
            preco=entity.preco,
            quantidade=entity.quantidade,
            observacoes_item=entity.observacoes_item,
        )


class PedidoMapper(BaseMapper):
    """Mapeador para Pedido."""

    @classmethod
    def model_class(cls) -> Type[models.Model]:
        return get_model('pedidos', 'Pedido')

    @staticmethod
    def to_entity(model: Any) -> Optional[PedidoEntity]:
        """Converte Pedido Model para Pedido Entity, incluindo os itens."""
        if not model: return None

        itens_entity = [ItemPedidoMapper.to_entity(item) for item in model.itens.all()]

        return PedidoEntity(
            id=model.id,
            id_exibicao=model.id_exibicao,
            nome_cliente=model.nome_cliente,
            endereco_cliente=model.endereco_cliente,
            cep_cliente=model.cep_cliente,
            ponto_referencia=model.ponto_referencia,
            valor_total=model.valor_total,
            status=model.status,
            tipo_pagamento=model.tipo_pagamento,
            status_pagamento=model.status_pagamento,
            observacoes=model.observacoes,
            rota_otimizada=model.rota_otimizada,
            link_nfe=model.link_nfe,
            entregador=model.entregador,
            entregador_id=model.entregador_cadastro_id,
            cupom_id=model.cupom_id,
            codigo_cupom_aplicado=model.codigo_cupom_aplicado,
            desconto_cupom_aplicado=model.desconto_cupom_aplicado,
            criado_em=model.criado_em,
            atualizado_em=model.atualizado_em,
            entregue_em=model.entregue_em,
            itens=itens_entity,
        )

    @classmethod
    def to_model(cls, entity: PedidoEntity, model: Optional[Any] = None) -> Any:
        """Converte Pedido Entity para Pedido Model (itens são tratados pelo repositório)."""
        if not model:
            model = cls.novo_model(entity)
            model.criado_em = entity.criado_em
            model.id_exibicao = entity.id_exibicao
            model.cupom_id = entity.cupom_id
            model.codigo_cupom_aplicado = entity.codigo_cupom_aplicado
            model.desconto_cupom_aplicado = entity.desconto_cupom_aplicado

        model.nome_cliente = entity.nome_cliente
        model.endereco_cliente = entity.endereco_cliente
        model.cep_cliente = entity.cep_cliente
        model.ponto_referencia = entity.ponto_referencia
        model.valor_total = entity.valor_total
        model.status = entity.status
        model.tipo_pagamento = entity.tipo_pagamento
        model.status_pagamento = entity.status_pagamento
        model.observacoes = entity.observacoes
        model.rota_otimizada = entity.rota_otimizada
        model.link_nfe = entity.link_nfe
        model.entregador = entity.entregador
        model.entregador_cadastro_id = entity.entregador_id
        model.atualizado_em = entity.atualizado_em
        # entregue_em nunca é apagado depois de definido
        if entity.entregue_em is not None or model.entregue_em is None:
            model.entregue_em = entity.entregue_em
        return model
