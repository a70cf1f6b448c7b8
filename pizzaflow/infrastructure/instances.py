"""
Módulo de inicialização dos repositórios e gateways.
Deve ser importado somente depois que o Django estiver configurado.
"""
from django.conf import settings

from .repositories import (
    ItemCardapioRepositoryDjango as ItemCardapioRepository,
    CupomRepositoryDjango as CupomRepository,
    EntregadorRepositoryDjango as EntregadorRepository,
    PedidoRepositoryDjango as PedidoRepository,
)
from .gateways import GeoapifyRotaGateway, BrasilApiCepGateway

# Instâncias globais dos repositórios
item_cardapio_repo = ItemCardapioRepository()
cupom_repo = CupomRepository()
entregador_repo = EntregadorRepository()
pedido_repo = PedidoRepository(cupom_repo=cupom_repo)

# Gateways externos
rota_gateway = GeoapifyRotaGateway(api_key=settings.GEOAPIFY_API_KEY, timeout=settings.HTTP_TIMEOUT)
cep_gateway = BrasilApiCepGateway(base_url=settings.BRASILAPI_URL, timeout=settings.HTTP_TIMEOUT)
