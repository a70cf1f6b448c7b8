# pizzaflow/core/ports.py
"""
Definição das Portas (Interfaces/Protocolos) da Arquitetura Limpa.

Estes protocolos definem o contrato que a camada de Infraestrutura (Repositórios, Gateways)
DEVE seguir para se conectar à camada Core (Casos de Uso).
"""

from typing import Protocol, List, Optional
from abc import abstractmethod
from datetime import datetime

from pizzaflow.core.entities import (
    ItemCardapio, Pedido, Cupom, Entregador, EnderecoCep, RotaOtimizada, ParadaEntrega, PlanoRota
)


# ====================================================================
# 1. REPOSITÓRIOS (Portas de Persistência)
# ====================================================================

class IItemCardapioRepository(Protocol):
    """Protocolo para a persistência do cardápio."""

    @abstractmethod
    def buscar_por_id(self, item_id: str) -> Optional[ItemCardapio]: ...

    @abstractmethod
    def listar_todos(self) -> List[ItemCardapio]: ...

    @abstractmethod
    def salvar(self, item: ItemCardapio) -> ItemCardapio: ...

    @abstractmethod
    def contar_referencias(self, item_id: str) -> int:
        """Quantidade de itens de pedido que apontam para este item do cardápio."""
        ...

    @abstractmethod
    def deletar(self, item_id: str) -> bool: ...


class ICupomRepository(Protocol):
    """Protocolo para a persistência de cupons."""

    @abstractmethod
    def buscar_por_id(self, cupom_id: str) -> Optional[Cupom]: ...

    @abstractmethod
    def buscar_por_codigo(self, codigo: str) -> Optional[Cupom]: ...

    @abstractmethod
    def listar_todos(self) -> List[Cupom]: ...

    @abstractmethod
    def salvar(self, cupom: Cupom) -> Cupom: ...

    @abstractmethod
    def incrementar_uso(self, cupom_id: str) -> bool:
        """
        Incrementa `vezes_usado` em uma única operação condicional
        (só se ainda estiver abaixo de `limite_uso`). Retorna False se o limite já foi atingido.
        """
        ...


class IEntregadorRepository(Protocol):

    @abstractmethod
    def buscar_por_id(self, entregador_id: str) -> Optional[Entregador]: ...

    @abstractmethod
    def listar_todos(self, apenas_ativos: bool = False) -> List[Entregador]: ...

    @abstractmethod
    def salvar(self, entregador: Entregador) -> Entregador: ...

    @abstractmethod
    def deletar(self, entregador_id: str) -> bool: ...


class IPedidoRepository(Protocol):
    """Protocolo para a persistência e gestão de Pedidos."""

    @abstractmethod
    def criar_pedido(self, pedido: Pedido) -> Pedido:
        """
        Cria o pedido, seus itens e (se houver cupom) incrementa o uso do cupom
        em uma única transação atômica. Levanta CupomEsgotadoError se o incremento falhar.
        """
        ...

    @abstractmethod
    def buscar_por_id(self, pedido_id: str) -> Optional[Pedido]: ...

    @abstractmethod
    def listar_todos(self, status: Optional[str] = None) -> List[Pedido]: ...

    @abstractmethod
    def listar_por_periodo(self, inicio: datetime, fim: datetime) -> List[Pedido]:
        """Pedidos com criado_em em [inicio, fim)."""
        ...

    @abstractmethod
    def salvar(self, pedido: Pedido) -> Pedido:
        """Atualiza um pedido existente (último a escrever vence)."""
        ...

    @abstractmethod
    def contar_ativos_por_entregador(self, entregador_id: str) -> int: ...


# ====================================================================
# 2. GATEWAYS (Portas de Serviços Externos)
# ====================================================================

class IRotaGateway(Protocol):
    """Provedor de rotas: texto/URL descritivo, nunca autoritativo."""

    @abstractmethod
    def descrever_rota(self, origem: str, destino: str) -> RotaOtimizada: ...

    @abstractmethod
    def planejar_multiplas_paradas(self, origem: str, paradas: List[ParadaEntrega]) -> PlanoRota: ...


class ICepGateway(Protocol):
    """Consulta de endereço por CEP (apenas para pré-preencher o formulário)."""

    @abstractmethod
    def buscar_endereco(self, cep: str) -> Optional[EnderecoCep]: ...
