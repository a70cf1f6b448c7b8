from django.db import models
from django.utils import timezone

from pizzaflow.core.entities import gerar_id, StatusPedido, StatusPagamento, TipoPagamento
from pizzaflow.cardapio.models import ItemCardapio


class Pedido(models.Model):
    """
    Modelo para pedidos de entrega.
    """
    STATUS_CHOICES = [
        (StatusPedido.PENDENTE, 'Pendente'),
        (StatusPedido.EM_PREPARO, 'Em Preparo'),
        (StatusPedido.AGUARDANDO_RETIRADA, 'Aguardando Retirada'),
        (StatusPedido.SAIU_PARA_ENTREGA, 'Saiu para Entrega'),
        (StatusPedido.ENTREGUE, 'Entregue'),
        (StatusPedido.CANCELADO, 'Cancelado'),
    ]

    PAGAMENTO_CHOICES = [
        (TipoPagamento.DINHEIRO, 'Dinheiro'),
        (TipoPagamento.CARTAO, 'Cartão'),
        (TipoPagamento.ONLINE, 'Online'),
    ]

    STATUS_PAGAMENTO_CHOICES = [
        (StatusPagamento.PENDENTE, 'Pendente'),
        (StatusPagamento.PAGO, 'Pago'),
    ]

    id = models.CharField(primary_key=True, max_length=36, default=gerar_id, editable=False)
    id_exibicao = models.CharField(max_length=50, blank=True, null=True, db_index=True, verbose_name="Código")

    # Cliente (Snapshot/Cópia dos dados no momento da compra)
    nome_cliente = models.CharField(max_length=255, verbose_name="Cliente")
    endereco_cliente = models.TextField(verbose_name="Endereço de Entrega")
    cep_cliente = models.CharField(max_length=9, blank=True, null=True, verbose_name="CEP")
    ponto_referencia = models.CharField(max_length=255, blank=True, null=True, verbose_name="Ponto de Referência")

    valor_total = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Total do Pedido")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=StatusPedido.PENDENTE, db_index=True, verbose_name="Status")

    # Pagamento
    tipo_pagamento = models.CharField(max_length=20, choices=PAGAMENTO_CHOICES, blank=True, null=True, verbose_name="Tipo de Pagamento")
    status_pagamento = models.CharField(
        max_length=20, choices=STATUS_PAGAMENTO_CHOICES, default=StatusPagamento.PENDENTE, verbose_name="Status do Pagamento"
    )

    observacoes = models.TextField(blank=True, null=True, verbose_name="Observações")
    rota_otimizada = models.TextField(blank=True, null=True, verbose_name="Rota Otimizada")
    link_nfe = models.URLField(max_length=2048, blank=True, null=True, verbose_name="Link da NF-e")

    # Entrega: o nome é um rótulo livre; o FK existe quando o entregador é cadastrado.
    entregador = models.CharField(max_length=255, blank=True, null=True, verbose_name="Entregador")
    entregador_cadastro = models.ForeignKey(
        'entregas.Entregador',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='pedidos',
        verbose_name="Entregador Cadastrado",
    )

    # Cupom aplicado (código e desconto congelados no pedido)
    cupom = models.ForeignKey(
        'cupons.Cupom',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='pedidos',
        verbose_name="Cupom",
    )
    codigo_cupom_aplicado = models.CharField(max_length=50, blank=True, null=True, verbose_name="Cupom Aplicado")
    desconto_cupom_aplicado = models.DecimalField(
        max_digits=10, decimal_places=2, blank=True, null=True, verbose_name="Desconto do Cupom"
    )

    criado_em = models.DateTimeField(default=timezone.now, db_index=True, verbose_name="Criado em")
    atualizado_em = models.DateTimeField(default=timezone.now, verbose_name="Atualizado em")
    entregue_em = models.DateTimeField(blank=True, null=True, verbose_name="Entregue em")

    class Meta:
        verbose_name = 'Pedido'
        verbose_name_plural = 'Pedidos'
        ordering = ['-criado_em']
        db_table = 'orders'

    def __str__(self):
        return f"Pedido {self.id_exibicao or self.id} - {self.nome_cliente} - {self.status}"

    @property
    def total_formatado(self):
        return f"R$ {self.valor_total:,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


class ItemPedido(models.Model):
    """Snapshot (nome e preço) do item do cardápio no momento do pedido."""
    id = models.CharField(primary_key=True, max_length=36, default=gerar_id, editable=False)
    pedido = models.ForeignKey(Pedido, on_delete=models.CASCADE, related_name='itens')
    # PROTECT: itens do cardápio já vendidos não podem ser apagados.
    item_cardapio = models.ForeignKey(ItemCardapio, on_delete=models.PROTECT, related_name='itens_pedido')

    nome = models.CharField(max_length=255, verbose_name="Nome do Item")
    preco = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Preço Unitário")
    quantidade = models.PositiveIntegerField(verbose_name="Quantidade")
    observacoes_item = models.TextField(blank=True, null=True, verbose_name="Observações do Item")

    class Meta:
        verbose_name = 'Item do Pedido'
        verbose_name_plural = 'Itens do Pedido'
        db_table = 'order_items'

    def __str__(self):
        return f"{self.quantidade}x {self.nome}"

    @property
    def subtotal(self):
        return self.preco * self.quantidade
