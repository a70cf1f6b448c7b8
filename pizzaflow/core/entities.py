from dataclasses import dataclass, field
from decimal import Decimal
from datetime import date, datetime, timezone
from typing import List, Optional
import uuid

# ====================================================================
# ENTIDADES CORE
# Representam os objetos de negócio puros do restaurante.
# ====================================================================


def gerar_id() -> str:
    """Gera um identificador opaco (UUID4 em texto)."""
    return str(uuid.uuid4())


def agora_utc() -> datetime:
    return datetime.now(timezone.utc)


class StatusPedido:
    """Estados do ciclo de vida de um pedido (valores persistidos no banco)."""
    PENDENTE = "Pendente"
    EM_PREPARO = "EmPreparo"
    AGUARDANDO_RETIRADA = "AguardandoRetirada"
    SAIU_PARA_ENTREGA = "SaiuParaEntrega"
    ENTREGUE = "Entregue"
    CANCELADO = "Cancelado"

    TODOS = (PENDENTE, EM_PREPARO, AGUARDANDO_RETIRADA, SAIU_PARA_ENTREGA, ENTREGUE, CANCELADO)
    TERMINAIS = (ENTREGUE, CANCELADO)


class TipoPagamento:
    DINHEIRO = "Dinheiro"
    CARTAO = "Cartao"
    ONLINE = "Online"

    TODOS = (DINHEIRO, CARTAO, ONLINE)


class StatusPagamento:
    PENDENTE = "Pendente"
    PAGO = "Pago"

    TODOS = (PENDENTE, PAGO)


class TipoDesconto:
    PERCENTUAL = "PERCENTAGE"
    VALOR_FIXO = "FIXED_AMOUNT"

    TODOS = (PERCENTUAL, VALOR_FIXO)


class MotivoCupomInvalido:
    """Códigos legíveis por máquina para a UI explicar por que o cupom não foi aplicado."""
    NAO_ENCONTRADO = "NAO_ENCONTRADO"
    INATIVO = "INATIVO"
    EXPIRADO = "EXPIRADO"
    ESGOTADO = "ESGOTADO"
    ABAIXO_DO_MINIMO = "ABAIXO_DO_MINIMO"


# ====================================================================
# CATÁLOGO, CUPONS E ENTREGADORES
# ====================================================================

@dataclass
class ItemCardapio:
    """Item do cardápio (pizza, bebida, sobremesa...)."""
    nome: str
    preco: Decimal
    categoria: str
    descricao: Optional[str] = None
    url_imagem: Optional[str] = None
    em_promocao: bool = False
    dica_ia: Optional[str] = None
    id: str = field(default_factory=gerar_id)
    criado_em: datetime = field(default_factory=agora_utc)
    atualizado_em: Optional[datetime] = None


@dataclass
class Desconto:
    tipo: str
    valor: Decimal


@dataclass
class Cupom:
    """Cupom promocional com limite de uso opcional."""
    codigo: str
    tipo_desconto: str
    valor_desconto: Decimal
    descricao: Optional[str] = None
    ativo: bool = True
    expira_em: Optional[datetime] = None
    limite_uso: Optional[int] = None
    vezes_usado: int = 0
    valor_minimo_pedido: Optional[Decimal] = None
    id: str = field(default_factory=gerar_id)
    criado_em: datetime = field(default_factory=agora_utc)
    atualizado_em: Optional[datetime] = None

    @property
    def desconto(self) -> Desconto:
        return Desconto(tipo=self.tipo_desconto, valor=self.valor_desconto)


@dataclass
class Entregador:
    nome: str
    detalhes_veiculo: Optional[str] = None
    placa: Optional[str] = None
    ativo: bool = True
    id: str = field(default_factory=gerar_id)
    criado_em: datetime = field(default_factory=agora_utc)
    atualizado_em: Optional[datetime] = None


# ====================================================================
# PEDIDO
# ====================================================================

@dataclass
class ItemPedido:
    """Snapshot de um item no momento do pedido (imutável)."""
    item_cardapio_id: str
    nome: str
    preco: Decimal
    quantidade: int
    observacoes_item: Optional[str] = None
    pedido_id: Optional[str] = None
    id: str = field(default_factory=gerar_id)

    @property
    def subtotal(self) -> Decimal:
        return self.preco * self.quantidade


@dataclass
class Pedido:
    """Entidade do Pedido de entrega."""
    # Campos obrigatórios
    nome_cliente: str
    endereco_cliente: str
    valor_total: Decimal
    # Campos opcionais/calculados
    itens: List[ItemPedido] = field(default_factory=list)
    status: str = StatusPedido.PENDENTE
    status_pagamento: str = StatusPagamento.PENDENTE
    tipo_pagamento: Optional[str] = None
    cep_cliente: Optional[str] = None
    ponto_referencia: Optional[str] = None
    observacoes: Optional[str] = None
    rota_otimizada: Optional[str] = None
    entregador: Optional[str] = None
    entregador_id: Optional[str] = None
    link_nfe: Optional[str] = None
    codigo_cupom_aplicado: Optional[str] = None
    desconto_cupom_aplicado: Optional[Decimal] = None
    cupom_id: Optional[str] = None
    id_exibicao: Optional[str] = None
    id: str = field(default_factory=gerar_id)
    criado_em: datetime = field(default_factory=agora_utc)
    atualizado_em: datetime = field(default_factory=agora_utc)
    entregue_em: Optional[datetime] = None

    @property
    def subtotal_itens(self) -> Decimal:
        return sum((item.subtotal for item in self.itens), Decimal("0"))

    @property
    def finalizado(self) -> bool:
        return self.status in StatusPedido.TERMINAIS


# ====================================================================
# DADOS DE ENTRADA (Criação de Pedido)
# ====================================================================

@dataclass
class DadosItemNovoPedido:
    """Item enviado pelo formulário do cliente (preço e nome capturados no carrinho)."""
    item_cardapio_id: str
    quantidade: int
    preco: Decimal
    nome: str
    observacoes_item: Optional[str] = None


@dataclass
class DadosNovoPedido:
    nome_cliente: str
    itens: List[DadosItemNovoPedido]
    endereco_cliente: str = ""
    tipo_pagamento: Optional[str] = None
    cep: Optional[str] = None
    rua: Optional[str] = None
    numero: Optional[str] = None
    bairro: Optional[str] = None
    cidade: Optional[str] = None
    estado: Optional[str] = None
    ponto_referencia: Optional[str] = None
    observacoes: Optional[str] = None
    codigo_cupom: Optional[str] = None

    def endereco_formatado(self) -> str:
        """Endereço em uma linha; o texto livre tem prioridade sobre os campos estruturados."""
        if self.endereco_cliente and self.endereco_cliente.strip():
            return self.endereco_cliente.strip()
        rua_numero = ", ".join(p for p in (self.rua, self.numero) if p)
        cidade_estado = "/".join(p for p in (self.cidade, self.estado) if p)
        partes = [p for p in (rua_numero, self.bairro, cidade_estado) if p]
        endereco = " - ".join(partes)
        if endereco and self.cep:
            endereco = f"{endereco} - CEP: {self.cep}"
        return endereco


# ====================================================================
# RESULTADOS (Precificação, Cupom, Rotas, Despacho)
# ====================================================================

@dataclass
class Totais:
    subtotal: Decimal
    valor_desconto: Decimal
    total: Decimal


@dataclass
class ResultadoValidacaoCupom:
    cupom: Optional[Cupom]
    motivo: Optional[str] = None

    @property
    def valido(self) -> bool:
        return self.cupom is not None


@dataclass
class EnderecoCep:
    cep: str
    rua: str = ""
    bairro: str = ""
    cidade: str = ""
    estado: str = ""

    @property
    def endereco_completo(self) -> str:
        return ", ".join(p for p in (self.rua, self.bairro, self.cidade, self.estado) if p)


@dataclass
class RotaOtimizada:
    url_rota: str
    descricao: Optional[str] = None
    distancia_metros: Optional[float] = None
    tempo_segundos: Optional[float] = None


@dataclass
class ParadaEntrega:
    pedido_id: str
    endereco: str


@dataclass
class TrechoRota:
    """Um trecho (leg) de uma rota com várias paradas."""
    pedido_ids: List[str]
    descricao: str
    url_mapa: str
    distancia_metros: Optional[float] = None
    tempo_segundos: Optional[float] = None


@dataclass
class PlanoRota:
    trechos: List[TrechoRota] = field(default_factory=list)
    resumo: Optional[str] = None


@dataclass
class FalhaDespacho:
    pedido_id: str
    motivo: str


@dataclass
class ResultadoDespacho:
    sucessos: List[Pedido] = field(default_factory=list)
    falhas: List[FalhaDespacho] = field(default_factory=list)


# ====================================================================
# ANALYTICS (Dashboard)
# ====================================================================

@dataclass
class ReceitaDiaria:
    data: date
    rotulo: str
    receita: Decimal


@dataclass
class ContagemStatus:
    status: str
    quantidade: int


@dataclass
class UsoCupons:
    total_cupons_usados: int = 0
    total_desconto: Decimal = Decimal("0")


@dataclass
class AnaliseDashboard:
    total_pedidos: int
    receita_total: Decimal
    ticket_medio: Decimal
    pedidos_por_status: List[ContagemStatus]
    receita_diaria: List[ReceitaDiaria]
    tempo_medio_entrega_minutos: Optional[int]
    uso_cupons: UsoCupons
