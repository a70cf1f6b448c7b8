from django.db import models
from django.utils import timezone

from pizzaflow.core.entities import gerar_id, TipoDesconto


class Cupom(models.Model):
    """Cupom promocional. `vezes_usado` só é incrementado pelo update condicional do repositório."""
    TIPO_DESCONTO_CHOICES = [
        (TipoDesconto.PERCENTUAL, 'Percentual'),
        (TipoDesconto.VALOR_FIXO, 'Valor Fixo'),
    ]

    id = models.CharField(primary_key=True, max_length=36, default=gerar_id, editable=False)
    # Código é case-sensitive: "PIZZA10" e "pizza10" são cupons diferentes.
    codigo = models.CharField(max_length=50, unique=True, verbose_name="Código")
    descricao = models.TextField(blank=True, null=True, verbose_name="Descrição")
    tipo_desconto = models.CharField(max_length=20, choices=TIPO_DESCONTO_CHOICES, verbose_name="Tipo de Desconto")
    valor_desconto = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Valor do Desconto")
    ativo = models.BooleanField(default=True, verbose_name="Ativo")
    expira_em = models.DateTimeField(blank=True, null=True, verbose_name="Expira em")
    limite_uso = models.PositiveIntegerField(blank=True, null=True, verbose_name="Limite de Uso")
    vezes_usado = models.PositiveIntegerField(default=0, verbose_name="Vezes Usado")
    valor_minimo_pedido = models.DecimalField(
        max_digits=10, decimal_places=2, blank=True, null=True, verbose_name="Valor Mínimo do Pedido"
    )

    criado_em = models.DateTimeField(default=timezone.now, verbose_name="Criado em")
    atualizado_em = models.DateTimeField(default=timezone.now, verbose_name="Atualizado em")

    class Meta:
        verbose_name = "Cupom"
        verbose_name_plural = "Cupons"
        db_table = 'coupons'
        ordering = ['-criado_em']

    def __str__(self):
        return self.codigo
