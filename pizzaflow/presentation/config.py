"""
Configuração de exibição dos status do pedido no painel (cores e rótulos).
O Core não conhece cores: apenas os valores de StatusPedido.
"""
from pizzaflow.core.entities import StatusPedido


CORES_STATUS = {
    StatusPedido.PENDENTE: {'rotulo': 'Pendente', 'cor': '#facc15'},
    StatusPedido.EM_PREPARO: {'rotulo': 'Em Preparo', 'cor': '#3b82f6'},
    StatusPedido.AGUARDANDO_RETIRADA: {'rotulo': 'Aguardando Retirada', 'cor': '#f97316'},
    StatusPedido.SAIU_PARA_ENTREGA: {'rotulo': 'Saiu para Entrega', 'cor': '#a855f7'},
    StatusPedido.ENTREGUE: {'rotulo': 'Entregue', 'cor': '#22c55e'},
    StatusPedido.CANCELADO: {'rotulo': 'Cancelado', 'cor': '#ef4444'},
}
