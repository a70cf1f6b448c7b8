from decimal import Decimal

from rest_framework import serializers

from pizzaflow.core.entities import (
    ItemCardapio, Cupom, Entregador, DadosNovoPedido, DadosItemNovoPedido,
    PlanoRota, TrechoRota, StatusPedido, StatusPagamento, TipoPagamento, TipoDesconto,
)
from pizzaflow.core.ciclo_vida import EventoPedido


def _dinheiro(**kwargs):
    return serializers.DecimalField(max_digits=10, decimal_places=2, **kwargs)


# ====================================================================
# CARDÁPIO
# ====================================================================

class ItemCardapioSerializer(serializers.Serializer):
    """Representa a entidade ItemCardapio (leitura e cadastro)."""
    id = serializers.CharField(read_only=True)
    nome = serializers.CharField(max_length=255)
    preco = _dinheiro()
    categoria = serializers.CharField(max_length=100)
    descricao = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    url_imagem = serializers.URLField(max_length=2048, required=False, allow_blank=True, allow_null=True)
    em_promocao = serializers.BooleanField(required=False, default=False)
    dica_ia = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    criado_em = serializers.DateTimeField(read_only=True)
    atualizado_em = serializers.DateTimeField(read_only=True)

    def to_entity(self) -> ItemCardapio:
        return ItemCardapio(**self.validated_data)


# ====================================================================
# CUPONS
# ====================================================================

class CupomSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    codigo = serializers.CharField(max_length=50)
    descricao = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tipo_desconto = serializers.ChoiceField(choices=TipoDesconto.TODOS)
    valor_desconto = _dinheiro()
    ativo = serializers.BooleanField(required=False, default=True)
    expira_em = serializers.DateTimeField(required=False, allow_null=True)
    limite_uso = serializers.IntegerField(required=False, allow_null=True)
    vezes_usado = serializers.IntegerField(read_only=True)
    valor_minimo_pedido = _dinheiro(required=False, allow_null=True)
    criado_em = serializers.DateTimeField(read_only=True)
    atualizado_em = serializers.DateTimeField(read_only=True)

    def to_entity(self) -> Cupom:
        return Cupom(**self.validated_data)


class ValidarCupomSerializer(serializers.Serializer):
    """Entrada da validação pública de cupom."""
    codigo = serializers.CharField(max_length=50)
    subtotal = _dinheiro(min_value=Decimal("0"))


class CupomPublicoSerializer(serializers.Serializer):
    """Dados do cupom expostos ao cliente (sem contadores de uso)."""
    codigo = serializers.CharField()
    descricao = serializers.CharField(allow_null=True)
    tipo_desconto = serializers.CharField()
    valor_desconto = _dinheiro()
    valor_minimo_pedido = _dinheiro(allow_null=True)


# ====================================================================
# ENTREGADORES
# ====================================================================

class EntregadorSerializer(serializers.Serializer):
    id = serializers.CharField(read_only=True)
    nome = serializers.CharField(max_length=255)
    detalhes_veiculo = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    placa = serializers.CharField(max_length=20, required=False, allow_blank=True, allow_null=True)
    ativo = serializers.BooleanField(required=False, default=True)
    criado_em = serializers.DateTimeField(read_only=True)
    atualizado_em = serializers.DateTimeField(read_only=True)

    def to_entity(self) -> Entregador:
        return Entregador(**self.validated_data)


# ====================================================================
# PEDIDOS
# ====================================================================

class ItemPedidoSerializer(serializers.Serializer):
    id = serializers.CharField()
    item_cardapio_id = serializers.CharField()
    nome = serializers.CharField()
    preco = _dinheiro()
    quantidade = serializers.IntegerField()
    observacoes_item = serializers.CharField(allow_null=True)
    subtotal = _dinheiro()


class PedidoSerializer(serializers.Serializer):
    """Representação completa do pedido (painel administrativo)."""
    id = serializers.CharField()
    id_exibicao = serializers.CharField(allow_null=True)
    nome_cliente = serializers.CharField()
    endereco_cliente = serializers.CharField()
    cep_cliente = serializers.CharField(allow_null=True)
    ponto_referencia = serializers.CharField(allow_null=True)
    valor_total = _dinheiro()
    status = serializers.CharField()
    tipo_pagamento = serializers.CharField(allow_null=True)
    status_pagamento = serializers.CharField()
    observacoes = serializers.CharField(allow_null=True)
    rota_otimizada = serializers.CharField(allow_null=True)
    entregador = serializers.CharField(allow_null=True)
    entregador_id = serializers.CharField(allow_null=True)
    link_nfe = serializers.CharField(allow_null=True)
    codigo_cupom_aplicado = serializers.CharField(allow_null=True)
    desconto_cupom_aplicado = _dinheiro(allow_null=True)
    criado_em = serializers.DateTimeField()
    atualizado_em = serializers.DateTimeField()
    entregue_em = serializers.DateTimeField(allow_null=True)
    itens = ItemPedidoSerializer(many=True)


class StatusPedidoPublicoSerializer(serializers.Serializer):
    """Página de acompanhamento do cliente: sem dados administrativos."""
    id = serializers.CharField()
    id_exibicao = serializers.CharField(allow_null=True)
    nome_cliente = serializers.CharField()
    status = serializers.CharField()
    valor_total = _dinheiro()
    codigo_cupom_aplicado = serializers.CharField(allow_null=True)
    desconto_cupom_aplicado = _dinheiro(allow_null=True)
    entregador = serializers.CharField(allow_null=True)
    criado_em = serializers.DateTimeField()
    entregue_em = serializers.DateTimeField(allow_null=True)
    itens = ItemPedidoSerializer(many=True)


class ItemNovoPedidoSerializer(serializers.Serializer):
    item_cardapio_id = serializers.CharField()
    nome = serializers.CharField(max_length=255)
    preco = _dinheiro(min_value=Decimal("0"))
    quantidade = serializers.IntegerField(min_value=1)
    observacoes_item = serializers.CharField(required=False, allow_blank=True, allow_null=True)


class CriarPedidoSerializer(serializers.Serializer):
    """
    Serializer para a validação dos dados do formulário de pedido.
    Aceita o endereço em texto livre ou em campos estruturados.
    """
    nome_cliente = serializers.CharField(max_length=255)
    endereco_cliente = serializers.CharField(required=False, allow_blank=True, default="")
    cep = serializers.CharField(max_length=9, required=False, allow_blank=True, allow_null=True)
    rua = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    numero = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    bairro = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    cidade = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    estado = serializers.CharField(max_length=2, required=False, allow_blank=True, allow_null=True)
    ponto_referencia = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    observacoes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    tipo_pagamento = serializers.ChoiceField(choices=TipoPagamento.TODOS, required=False, allow_null=True)
    codigo_cupom = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    itens = ItemNovoPedidoSerializer(many=True, allow_empty=False)

    def to_dados_entity(self) -> DadosNovoPedido:
        """Converte os dados validados para a entidade de entrada do caso de uso."""
        dados = dict(self.validated_data)
        itens = [DadosItemNovoPedido(**item) for item in dados.pop('itens')]
        return DadosNovoPedido(itens=itens, **dados)


# ====================================================================
# OPERAÇÕES ADMINISTRATIVAS DE PEDIDO
# ====================================================================

class TransicaoPedidoSerializer(serializers.Serializer):
    """Aceita um evento da máquina de estados ou o status de destino."""
    evento = serializers.ChoiceField(choices=EventoPedido.TODOS, required=False)
    status = serializers.ChoiceField(choices=StatusPedido.TODOS, required=False)
    rota = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    entregador_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    nome_entregador = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if bool(attrs.get('evento')) == bool(attrs.get('status')):
            raise serializers.ValidationError("Informe 'evento' ou 'status' (apenas um deles).")
        return attrs


class EditarPedidoSerializer(serializers.Serializer):
    """Campos editáveis de um pedido. Somente os campos enviados são alterados."""
    nome_cliente = serializers.CharField(max_length=255, required=False)
    endereco_cliente = serializers.CharField(required=False)
    cep_cliente = serializers.CharField(max_length=9, required=False, allow_blank=True, allow_null=True)
    ponto_referencia = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)
    tipo_pagamento = serializers.ChoiceField(choices=TipoPagamento.TODOS, required=False, allow_null=True)
    status_pagamento = serializers.ChoiceField(choices=StatusPagamento.TODOS, required=False)
    observacoes = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    link_nfe = serializers.URLField(max_length=2048, required=False, allow_blank=True, allow_null=True)
    valor_total = _dinheiro(required=False)


class RegistrarPagamentoSerializer(serializers.Serializer):
    tipo_pagamento = serializers.ChoiceField(choices=TipoPagamento.TODOS, required=False, allow_null=True)


class PlanejarRotaSerializer(serializers.Serializer):
    pedido_ids = serializers.ListField(child=serializers.CharField(), allow_empty=False)


class TrechoRotaSerializer(serializers.Serializer):
    pedido_ids = serializers.ListField(child=serializers.CharField())
    descricao = serializers.CharField()
    url_mapa = serializers.CharField()
    distancia_metros = serializers.FloatField(required=False, allow_null=True)
    tempo_segundos = serializers.FloatField(required=False, allow_null=True)


class PlanoRotaSerializer(serializers.Serializer):
    trechos = TrechoRotaSerializer(many=True)
    resumo = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class RotaOtimizadaSerializer(serializers.Serializer):
    url_rota = serializers.CharField()
    descricao = serializers.CharField(allow_null=True)
    distancia_metros = serializers.FloatField(allow_null=True)
    tempo_segundos = serializers.FloatField(allow_null=True)


class DespacharMultiplosSerializer(serializers.Serializer):
    plano = PlanoRotaSerializer()
    entregador_id = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    nome_entregador = serializers.CharField(max_length=255, required=False, allow_blank=True, allow_null=True)

    def validate(self, attrs):
        if not attrs.get('entregador_id') and not (attrs.get('nome_entregador') or '').strip():
            raise serializers.ValidationError("Informe o entregador (cadastrado ou pelo nome).")
        return attrs

    def to_plano_entity(self) -> PlanoRota:
        plano = self.validated_data['plano']
        return PlanoRota(
            trechos=[TrechoRota(**trecho) for trecho in plano['trechos']],
            resumo=plano.get('resumo'),
        )


class FalhaDespachoSerializer(serializers.Serializer):
    pedido_id = serializers.CharField()
    motivo = serializers.CharField()


class ResultadoDespachoSerializer(serializers.Serializer):
    sucessos = PedidoSerializer(many=True)
    falhas = FalhaDespachoSerializer(many=True)


# ====================================================================
# CEP E DASHBOARD
# ====================================================================

class EnderecoCepSerializer(serializers.Serializer):
    cep = serializers.CharField()
    rua = serializers.CharField()
    bairro = serializers.CharField()
    cidade = serializers.CharField()
    estado = serializers.CharField()
    endereco_completo = serializers.CharField()


class PeriodoAnaliseSerializer(serializers.Serializer):
    inicio = serializers.DateField(required=False)
    fim = serializers.DateField(required=False)


class ContagemStatusSerializer(serializers.Serializer):
    status = serializers.CharField()
    quantidade = serializers.IntegerField()


class ReceitaDiariaSerializer(serializers.Serializer):
    data = serializers.DateField()
    rotulo = serializers.CharField()
    receita = _dinheiro()


class UsoCuponsSerializer(serializers.Serializer):
    total_cupons_usados = serializers.IntegerField()
    total_desconto = _dinheiro()


class AnaliseDashboardSerializer(serializers.Serializer):
    total_pedidos = serializers.IntegerField()
    receita_total = _dinheiro()
    ticket_medio = _dinheiro()
    pedidos_por_status = ContagemStatusSerializer(many=True)
    receita_diaria = ReceitaDiariaSerializer(many=True)
    tempo_medio_entrega_minutos = serializers.IntegerField(allow_null=True)
    uso_cupons = UsoCuponsSerializer()
