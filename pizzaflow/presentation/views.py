# pizzaflow/presentation/views.py
"""
Views públicas (cliente): cardápio, criação e acompanhamento de pedidos,
validação de cupom e consulta de CEP.
"""
from rest_framework import status
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.views import APIView

from pizzaflow.core.dependency_injection import (
    get_criar_pedido_use_case,
    get_gerenciar_cardapio_use_case,
    get_gerenciar_pedidos_use_case,
    get_validar_cupom_use_case,
    get_buscar_cep_use_case,
)
from pizzaflow.core.exceptions import BaseErroCore
from pizzaflow.core.precificacao import calcular_valor_desconto, quantizar

from .erros import resposta_erro
from .serializers import (
    ItemCardapioSerializer,
    CriarPedidoSerializer,
    StatusPedidoPublicoSerializer,
    ValidarCupomSerializer,
    CupomPublicoSerializer,
    EnderecoCepSerializer,
)


# ====================================================================
# VIEWS: Orquestram a requisição, a execução dos casos de uso e a resposta.
# ====================================================================

class CardapioAPIView(APIView):
    """Lista o cardápio completo, ordenado por categoria e nome."""
    permission_classes = [AllowAny]

    def get(self, request):
        itens = get_gerenciar_cardapio_use_case().listar_todos()
        return Response(ItemCardapioSerializer(itens, many=True).data)


class CriarPedidoAPIView(APIView):
    """
    Cria um pedido a partir do formulário do cliente.
    O cupom é revalidado no servidor; se não puder ser aplicado, o pedido
    segue sem desconto.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = CriarPedidoSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        try:
            pedido = get_criar_pedido_use_case().executar(serializer.to_dados_entity())
        except BaseErroCore as e:
            return resposta_erro(e)

        return Response(StatusPedidoPublicoSerializer(pedido).data, status=status.HTTP_201_CREATED)


class StatusPedidoAPIView(APIView):
    """Página de acompanhamento: qualquer pessoa com o ID do pedido pode consultar."""
    permission_classes = [AllowAny]

    def get(self, request, pedido_id):
        try:
            pedido = get_gerenciar_pedidos_use_case().detalhar_pedido(pedido_id)
        except BaseErroCore as e:
            return resposta_erro(e)
        return Response(StatusPedidoPublicoSerializer(pedido).data)


class ValidarCupomAPIView(APIView):
    """
    Valida um código de cupom para o subtotal do carrinho.
    Cupom inválido não é erro HTTP: a resposta traz `valido=False` e o motivo.
    """
    permission_classes = [AllowAny]

    def post(self, request):
        serializer = ValidarCupomSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        subtotal = serializer.validated_data['subtotal']
        resultado = get_validar_cupom_use_case().executar(serializer.validated_data['codigo'], subtotal)
        if not resultado.valido:
            return Response({'valido': False, 'motivo': resultado.motivo})

        desconto = quantizar(calcular_valor_desconto(subtotal, resultado.cupom.desconto))
        return Response({
            'valido': True,
            'motivo': None,
            'cupom': CupomPublicoSerializer(resultado.cupom).data,
            'valor_desconto': str(desconto),
            'total': str(quantizar(subtotal) - desconto),
        })


class BuscarCepAPIView(APIView):
    """Consulta consultiva de endereço por CEP (BrasilAPI)."""
    permission_classes = [AllowAny]

    def get(self, request, cep):
        endereco = get_buscar_cep_use_case().executar(cep)
        if endereco is None:
            return Response({'message': 'CEP não encontrado.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(EnderecoCepSerializer(endereco).data)
