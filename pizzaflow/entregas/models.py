from django.db import models
from django.utils import timezone

from pizzaflow.core.entities import gerar_id


class Entregador(models.Model):
    id = models.CharField(primary_key=True, max_length=36, default=gerar_id, editable=False)
    nome = models.CharField(max_length=255, verbose_name="Nome")
    detalhes_veiculo = models.CharField(max_length=255, blank=True, null=True, verbose_name="Veículo")
    placa = models.CharField(max_length=20, blank=True, null=True, verbose_name="Placa")
    ativo = models.BooleanField(default=True, verbose_name="Ativo")

    criado_em = models.DateTimeField(default=timezone.now, verbose_name="Criado em")
    atualizado_em = models.DateTimeField(default=timezone.now, verbose_name="Atualizado em")

    class Meta:
        verbose_name = "Entregador"
        verbose_name_plural = "Entregadores"
        db_table = 'delivery_persons'
        ordering = ['nome']

    def __str__(self):
        return self.nome
