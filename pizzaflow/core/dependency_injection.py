# pizzaflow/core/dependency_injection.py
"""
Módulo de Injeção de Dependência (DI).
Responsável por instanciar os Use Cases com suas dependências de Repositórios/Gateways
concretos da camada de Infraestrutura.
"""
from zoneinfo import ZoneInfo

from django.conf import settings

from pizzaflow.infrastructure.instances import (
    item_cardapio_repo,
    cupom_repo,
    entregador_repo,
    pedido_repo,
    rota_gateway,
    cep_gateway,
)
from .use_cases import (
    ValidarCupomUseCase,
    GerenciarCuponsUseCase,
    CriarPedidoUseCase,
    SimularPedidoUseCase,
    TransicionarPedidoUseCase,
    DespacharMultiplosPedidosUseCase,
    GerenciarPedidosAdminUseCase,
    GerenciarCardapioUseCase,
    GerenciarEntregadoresUseCase,
    OtimizarRotaUseCase,
    BuscarEnderecoPorCepUseCase,
    CalcularAnaliseDashboardUseCase,
    ExportarPedidosCsvUseCase,
)


def fuso_local() -> ZoneInfo:
    return ZoneInfo(settings.TIME_ZONE)


# ====================================================================
# Use Cases de Pedido
# ====================================================================

def get_criar_pedido_use_case() -> CriarPedidoUseCase:
    return CriarPedidoUseCase(
        pedido_repo=pedido_repo,
        cupom_repo=cupom_repo,
        item_cardapio_repo=item_cardapio_repo,
        reprecificar=settings.PIZZAFLOW_REPRECIFICAR_PEDIDOS,
    )

def get_simular_pedido_use_case() -> SimularPedidoUseCase:
    return SimularPedidoUseCase(get_criar_pedido_use_case(), item_cardapio_repo, cupom_repo)

def get_transicionar_pedido_use_case() -> TransicionarPedidoUseCase:
    return TransicionarPedidoUseCase(pedido_repo, entregador_repo)

def get_despachar_multiplos_use_case() -> DespacharMultiplosPedidosUseCase:
    return DespacharMultiplosPedidosUseCase(get_transicionar_pedido_use_case())

def get_gerenciar_pedidos_use_case() -> GerenciarPedidosAdminUseCase:
    return GerenciarPedidosAdminUseCase(pedido_repo)


# ====================================================================
# Use Cases de Cadastro (Cardápio, Cupons, Entregadores)
# ====================================================================

def get_gerenciar_cardapio_use_case() -> GerenciarCardapioUseCase:
    return GerenciarCardapioUseCase(item_cardapio_repo)

def get_gerenciar_cupons_use_case() -> GerenciarCuponsUseCase:
    return GerenciarCuponsUseCase(cupom_repo)

def get_validar_cupom_use_case() -> ValidarCupomUseCase:
    return ValidarCupomUseCase(cupom_repo)

def get_gerenciar_entregadores_use_case() -> GerenciarEntregadoresUseCase:
    return GerenciarEntregadoresUseCase(entregador_repo, pedido_repo)


# ====================================================================
# Rotas, CEP, Dashboard e Exportação
# ====================================================================

def get_otimizar_rota_use_case() -> OtimizarRotaUseCase:
    return OtimizarRotaUseCase(rota_gateway, pedido_repo, settings.ENDERECO_PIZZARIA)

def get_buscar_cep_use_case() -> BuscarEnderecoPorCepUseCase:
    return BuscarEnderecoPorCepUseCase(cep_gateway)

def get_analise_dashboard_use_case() -> CalcularAnaliseDashboardUseCase:
    return CalcularAnaliseDashboardUseCase(pedido_repo, fuso_local())

def get_exportar_csv_use_case() -> ExportarPedidosCsvUseCase:
    return ExportarPedidosCsvUseCase(pedido_repo, fuso_local())
