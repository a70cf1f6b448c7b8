"""
Repositórios em memória.

Implementam as mesmas Portas do Core sem o Django ORM; servem para testes
unitários e simulações onde o banco não é necessário. Cada repositório
guarda cópias das entidades, então alterar um objeto retornado não altera
o armazenamento.
"""
import copy
import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from pizzaflow.core.entities import ItemCardapio, Cupom, Entregador, Pedido, StatusPedido
from pizzaflow.core.ports import (
    IItemCardapioRepository,
    ICupomRepository,
    IEntregadorRepository,
    IPedidoRepository,
)
from pizzaflow.core.exceptions import (
    PedidoNaoEncontradoError,
    CupomEsgotadoError,
    CodigoCupomDuplicadoError,
    ExclusaoBloqueadaError,
)


class CupomRepositoryMemoria(ICupomRepository):

    def __init__(self, cupons: Optional[List[Cupom]] = None):
        self._lock = threading.Lock()
        self._dados: Dict[str, Cupom] = {c.id: copy.deepcopy(c) for c in (cupons or [])}

    def buscar_por_id(self, cupom_id: str) -> Optional[Cupom]:
        with self._lock:
            return copy.deepcopy(self._dados.get(cupom_id))

    def buscar_por_codigo(self, codigo: str) -> Optional[Cupom]:
        with self._lock:
            cupom = next((c for c in self._dados.values() if c.codigo == codigo), None)
            return copy.deepcopy(cupom)

    def listar_todos(self) -> List[Cupom]:
        with self._lock:
            return sorted(copy.deepcopy(list(self._dados.values())), key=lambda c: c.criado_em, reverse=True)

    def salvar(self, cupom: Cupom) -> Cupom:
        with self._lock:
            if any(c.codigo == cupom.codigo and c.id != cupom.id for c in self._dados.values()):
                raise CodigoCupomDuplicadoError(cupom.codigo)
            novo = copy.deepcopy(cupom)
            existente = self._dados.get(cupom.id)
            if existente is not None:
                novo.vezes_usado = existente.vezes_usado
            self._dados[cupom.id] = novo
            return copy.deepcopy(novo)

    def incrementar_uso(self, cupom_id: str) -> bool:
        return self.registrar_uso(cupom_id, lambda: None)

    def registrar_uso(self, cupom_id: str, gravar: Callable[[], None]) -> bool:
        """
        Executa `gravar` e incrementa o contador na mesma seção crítica, como o
        UPDATE condicional dentro da transação do pedido. Se `gravar` falhar, o
        contador não muda; se o cupom estiver esgotado, `gravar` não é chamado.
        """
        with self._lock:
            cupom = self._dados.get(cupom_id)
            if cupom is None:
                return False
            if cupom.limite_uso is not None and cupom.vezes_usado >= cupom.limite_uso:
                return False
            gravar()
            cupom.vezes_usado += 1
            return True


class ItemCardapioRepositoryMemoria(IItemCardapioRepository):

    def __init__(self, itens: Optional[List[ItemCardapio]] = None, pedido_repo: Optional["PedidoRepositoryMemoria"] = None):
        self._lock = threading.Lock()
        self._dados: Dict[str, ItemCardapio] = {i.id: copy.deepcopy(i) for i in (itens or [])}
        self.pedido_repo = pedido_repo

    def buscar_por_id(self, item_id: str) -> Optional[ItemCardapio]:
        with self._lock:
            return copy.deepcopy(self._dados.get(item_id))

    def listar_todos(self) -> List[ItemCardapio]:
        with self._lock:
            return sorted(copy.deepcopy(list(self._dados.values())), key=lambda i: (i.categoria, i.nome))

    def salvar(self, item: ItemCardapio) -> ItemCardapio:
        with self._lock:
            self._dados[item.id] = copy.deepcopy(item)
            return copy.deepcopy(item)

    def contar_referencias(self, item_id: str) -> int:
        if self.pedido_repo is None:
            return 0
        return sum(
            1
            for pedido in self.pedido_repo.listar_todos()
            for item in pedido.itens
            if item.item_cardapio_id == item_id
        )

    def deletar(self, item_id: str) -> bool:
        referencias = self.contar_referencias(item_id)
        if referencias:
            raise ExclusaoBloqueadaError(item_id, referencias)
        with self._lock:
            return self._dados.pop(item_id, None) is not None


class EntregadorRepositoryMemoria(IEntregadorRepository):

    def __init__(self, entregadores: Optional[List[Entregador]] = None):
        self._lock = threading.Lock()
        self._dados: Dict[str, Entregador] = {e.id: copy.deepcopy(e) for e in (entregadores or [])}

    def buscar_por_id(self, entregador_id: str) -> Optional[Entregador]:
        with self._lock:
            return copy.deepcopy(self._dados.get(entregador_id))

    def listar_todos(self, apenas_ativos: bool = False) -> List[Entregador]:
        with self._lock:
            entregadores = [e for e in self._dados.values() if e.ativo or not apenas_ativos]
            return sorted(copy.deepcopy(entregadores), key=lambda e: e.nome)

    def salvar(self, entregador: Entregador) -> Entregador:
        with self._lock:
            self._dados[entregador.id] = copy.deepcopy(entregador)
            return copy.deepcopy(entregador)

    def deletar(self, entregador_id: str) -> bool:
        with self._lock:
            return self._dados.pop(entregador_id, None) is not None


class PedidoRepositoryMemoria(IPedidoRepository):

    def __init__(self, cupom_repo: Optional[CupomRepositoryMemoria] = None):
        self._lock = threading.Lock()
        self._dados: Dict[str, Pedido] = {}
        self.cupom_repo = cupom_repo or CupomRepositoryMemoria()
        # Simula falha de armazenamento na próxima gravação (usado em testes)
        self.falhar_proxima_gravacao: Optional[Exception] = None

    def criar_pedido(self, pedido: Pedido) -> Pedido:
        novo = copy.deepcopy(pedido)
        for item in novo.itens:
            item.pedido_id = novo.id

        def gravar():
            erro, self.falhar_proxima_gravacao = self.falhar_proxima_gravacao, None
            if erro is not None:
                raise erro
            self._dados[novo.id] = novo

        with self._lock:
            if not pedido.cupom_id:
                gravar()
            elif not self.cupom_repo.registrar_uso(pedido.cupom_id, gravar):
                raise CupomEsgotadoError(pedido.cupom_id)
        return copy.deepcopy(novo)

    def buscar_por_id(self, pedido_id: str) -> Optional[Pedido]:
        with self._lock:
            return copy.deepcopy(self._dados.get(pedido_id))

    def listar_todos(self, status: Optional[str] = None) -> List[Pedido]:
        with self._lock:
            pedidos = [p for p in self._dados.values() if not status or p.status == status]
            return sorted(copy.deepcopy(pedidos), key=lambda p: p.criado_em, reverse=True)

    def listar_por_periodo(self, inicio: datetime, fim: datetime) -> List[Pedido]:
        return [p for p in self.listar_todos() if inicio <= p.criado_em < fim]

    def salvar(self, pedido: Pedido) -> Pedido:
        with self._lock:
            atual = self._dados.get(pedido.id)
            if atual is None:
                raise PedidoNaoEncontradoError(f"Pedido ID {pedido.id} não existe para atualização.")
            novo = copy.deepcopy(pedido)
            if novo.entregue_em is None:
                novo.entregue_em = atual.entregue_em
            self._dados[pedido.id] = novo
            return copy.deepcopy(novo)

    def contar_ativos_por_entregador(self, entregador_id: str) -> int:
        with self._lock:
            return sum(
                1 for p in self._dados.values()
                if p.entregador_id == entregador_id and p.status not in StatusPedido.TERMINAIS
            )
