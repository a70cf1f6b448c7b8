# pizzaflow/presentation/views_admin.py
"""
Views para o painel de administração (cozinha e despacho).
Todas exigem usuário staff (IsAdminUser).
"""
import logging

from django.http import HttpResponse
from django.utils import timezone
from rest_framework import status
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response
from rest_framework.views import APIView

from pizzaflow.core.ciclo_vida import TRANSICOES
from pizzaflow.core.dependency_injection import (
    get_gerenciar_cardapio_use_case,
    get_gerenciar_cupons_use_case,
    get_gerenciar_entregadores_use_case,
    get_gerenciar_pedidos_use_case,
    get_transicionar_pedido_use_case,
    get_despachar_multiplos_use_case,
    get_otimizar_rota_use_case,
    get_analise_dashboard_use_case,
    get_exportar_csv_use_case,
)
from pizzaflow.core.entities import StatusPedido
from pizzaflow.core.exceptions import BaseErroCore, StatusInvalidoError

from .config import CORES_STATUS
from .erros import resposta_erro
from .serializers import (
    ItemCardapioSerializer,
    CupomSerializer,
    EntregadorSerializer,
    PedidoSerializer,
    TransicaoPedidoSerializer,
    EditarPedidoSerializer,
    RegistrarPagamentoSerializer,
    PlanejarRotaSerializer,
    PlanoRotaSerializer,
    RotaOtimizadaSerializer,
    DespacharMultiplosSerializer,
    ResultadoDespachoSerializer,
    PeriodoAnaliseSerializer,
    AnaliseDashboardSerializer,
)

logger = logging.getLogger(__name__)


class AdminAPIView(APIView):
    permission_classes = [IsAdminUser]


def _validar_status(valor):
    if valor and valor not in StatusPedido.TODOS:
        raise StatusInvalidoError(f"Status '{valor}' não é um status válido.")
    return valor or None


# ====================================================================
# CARDÁPIO
# ====================================================================

class CardapioAdminListView(AdminAPIView):

    def get(self, request):
        itens = get_gerenciar_cardapio_use_case().listar_todos()
        return Response(ItemCardapioSerializer(itens, many=True).data)

    def post(self, request):
        serializer = ItemCardapioSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            item = get_gerenciar_cardapio_use_case().criar(serializer.to_entity())
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(ItemCardapioSerializer(item).data, status=status.HTTP_201_CREATED)


class CardapioAdminDetailView(AdminAPIView):

    def get(self, request, item_id):
        try:
            item = get_gerenciar_cardapio_use_case().detalhar(item_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(ItemCardapioSerializer(item).data)

    def patch(self, request, item_id):
        serializer = ItemCardapioSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            item = get_gerenciar_cardapio_use_case().atualizar(item_id, serializer.validated_data)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(ItemCardapioSerializer(item).data)

    def delete(self, request, item_id):
        """Exclusão bloqueada (409) enquanto algum pedido referenciar o item."""
        try:
            get_gerenciar_cardapio_use_case().deletar(item_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ====================================================================
# CUPONS
# ====================================================================

class CuponsAdminListView(AdminAPIView):

    def get(self, request):
        cupons = get_gerenciar_cupons_use_case().listar_todos()
        return Response(CupomSerializer(cupons, many=True).data)

    def post(self, request):
        serializer = CupomSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            cupom = get_gerenciar_cupons_use_case().criar(serializer.to_entity())
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(CupomSerializer(cupom).data, status=status.HTTP_201_CREATED)


class CupomAdminDetailView(AdminAPIView):

    def get(self, request, cupom_id):
        try:
            cupom = get_gerenciar_cupons_use_case().detalhar(cupom_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(CupomSerializer(cupom).data)

    def patch(self, request, cupom_id):
        serializer = CupomSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            cupom = get_gerenciar_cupons_use_case().atualizar(cupom_id, serializer.validated_data)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(CupomSerializer(cupom).data)


# ====================================================================
# ENTREGADORES
# ====================================================================

class EntregadoresAdminListView(AdminAPIView):

    def get(self, request):
        apenas_ativos = request.query_params.get('ativos') in ('1', 'true', 'True')
        entregadores = get_gerenciar_entregadores_use_case().listar_todos(apenas_ativos)
        return Response(EntregadorSerializer(entregadores, many=True).data)

    def post(self, request):
        serializer = EntregadorSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            entregador = get_gerenciar_entregadores_use_case().criar(serializer.to_entity())
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(EntregadorSerializer(entregador).data, status=status.HTTP_201_CREATED)


class EntregadorAdminDetailView(AdminAPIView):

    def get(self, request, entregador_id):
        try:
            entregador = get_gerenciar_entregadores_use_case().detalhar(entregador_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(EntregadorSerializer(entregador).data)

    def patch(self, request, entregador_id):
        serializer = EntregadorSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            entregador = get_gerenciar_entregadores_use_case().atualizar(entregador_id, serializer.validated_data)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(EntregadorSerializer(entregador).data)

    def delete(self, request, entregador_id):
        try:
            get_gerenciar_entregadores_use_case().deletar(entregador_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ====================================================================
# GERENCIAMENTO DE PEDIDOS
# ====================================================================

class StatusConfigView(AdminAPIView):
    """Status do pedido com rótulo, cor e eventos possíveis (para montar o painel)."""

    def get(self, request):
        return Response([
            {
                'status': valor,
                'rotulo': CORES_STATUS[valor]['rotulo'],
                'cor': CORES_STATUS[valor]['cor'],
                'eventos': [evento for (origem, evento) in TRANSICOES if origem == valor],
            }
            for valor in StatusPedido.TODOS
        ])


class PedidosAdminListView(AdminAPIView):
    """Listagem de pedidos, com filtro opcional `?status=`."""

    def get(self, request):
        try:
            status_filtro = _validar_status(request.query_params.get('status'))
            pedidos = get_gerenciar_pedidos_use_case().listar_todos(status=status_filtro)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(PedidoSerializer(pedidos, many=True).data)


class PedidoAdminDetailView(AdminAPIView):

    def get(self, request, pedido_id):
        try:
            pedido = get_gerenciar_pedidos_use_case().detalhar_pedido(pedido_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(PedidoSerializer(pedido).data)

    def patch(self, request, pedido_id):
        """Edita dados do pedido. O status só muda pela rota de transição."""
        serializer = EditarPedidoSerializer(data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            pedido = get_gerenciar_pedidos_use_case().atualizar_detalhes(pedido_id, serializer.validated_data)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(PedidoSerializer(pedido).data)


class TransicionarPedidoView(AdminAPIView):
    """
    Aplica um evento da máquina de estados (`evento`) ou pede um status de
    destino (`status`), que é convertido no evento legal correspondente.
    """

    def post(self, request, pedido_id):
        serializer = TransicaoPedidoSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        dados = serializer.validated_data
        kwargs = {
            'rota': dados.get('rota') or None,
            'entregador_id': dados.get('entregador_id') or None,
            'nome_entregador': dados.get('nome_entregador') or None,
        }
        uc = get_transicionar_pedido_use_case()
        try:
            if dados.get('evento'):
                pedido = uc.executar(pedido_id, dados['evento'], **kwargs)
            else:
                pedido = uc.atualizar_status(pedido_id, dados['status'], **kwargs)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(PedidoSerializer(pedido).data)


class RegistrarPagamentoView(AdminAPIView):

    def post(self, request, pedido_id):
        serializer = RegistrarPagamentoSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            pedido = get_gerenciar_pedidos_use_case().registrar_pagamento(
                pedido_id, serializer.validated_data.get('tipo_pagamento'),
            )
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(PedidoSerializer(pedido).data)


# ====================================================================
# ROTAS E DESPACHO
# ====================================================================

class RotaPedidoView(AdminAPIView):
    """Rota da pizzaria até o endereço do pedido (consultiva)."""

    def get(self, request, pedido_id):
        try:
            rota = get_otimizar_rota_use_case().rota_para_pedido(pedido_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(RotaOtimizadaSerializer(rota).data)


class PlanejarRotaView(AdminAPIView):
    """Agrupa vários pedidos em trechos de rota a partir da pizzaria."""

    def post(self, request):
        serializer = PlanejarRotaSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            plano = get_otimizar_rota_use_case().planejar(serializer.validated_data['pedido_ids'])
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(PlanoRotaSerializer(plano).data)


class DespacharMultiplosView(AdminAPIView):
    """
    Despacha todos os pedidos de um plano de rota. Falhas individuais não
    interrompem o lote e são devolvidas em `falhas`.
    """

    def post(self, request):
        serializer = DespacharMultiplosSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            resultado = get_despachar_multiplos_use_case().executar(
                serializer.to_plano_entity(),
                entregador_id=serializer.validated_data.get('entregador_id') or None,
                nome_entregador=serializer.validated_data.get('nome_entregador') or None,
            )
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(ResultadoDespachoSerializer(resultado).data)


# ====================================================================
# DASHBOARD E EXPORTAÇÃO
# ====================================================================

class DashboardAnaliseView(AdminAPIView):
    """Métricas do dashboard. Sem `inicio`/`fim`: todos os pedidos e os últimos 7 dias."""

    def get(self, request):
        serializer = PeriodoAnaliseSerializer(data=request.query_params)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            analise = get_analise_dashboard_use_case().executar(
                serializer.validated_data.get('inicio'),
                serializer.validated_data.get('fim'),
            )
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(AnaliseDashboardSerializer(analise).data)


class ExportarPedidosCsvView(AdminAPIView):
    """Exporta os pedidos (filtro opcional `?status=`) em CSV."""

    def get(self, request):
        try:
            status_filtro = _validar_status(request.query_params.get('status'))
            conteudo = get_exportar_csv_use_case().executar(status_filtro)
        except BaseErroCore as e:
            return resposta_erro(e)

        nome_arquivo = f"pedidos_{timezone.localdate():%Y%m%d}.csv"
        response = HttpResponse(conteudo, content_type='text/csv; charset=utf-8')
        response['Content-Disposition'] = f'attachment; filename="{nome_arquivo}"'
        logger.info("Exportação CSV gerada por %s.", request.user)
        return response
