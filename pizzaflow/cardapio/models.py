from django.db import models
from django.utils import timezone

from pizzaflow.core.entities import gerar_id


class ItemCardapio(models.Model):
    """Item do cardápio (pizza, bebida, sobremesa...)."""
    id = models.CharField(primary_key=True, max_length=36, default=gerar_id, editable=False)
    nome = models.CharField(max_length=255, verbose_name="Nome")
    descricao = models.TextField(blank=True, null=True, verbose_name="Descrição")
    preco = models.DecimalField(max_digits=10, decimal_places=2, verbose_name="Preço")
    categoria = models.CharField(max_length=100, verbose_name="Categoria")
    url_imagem = models.URLField(max_length=2048, blank=True, null=True, verbose_name="URL da Imagem")
    em_promocao = models.BooleanField(default=False, verbose_name="Em Promoção")
    # Palavras-chave usadas para sugerir imagens do item
    dica_ia = models.CharField(max_length=255, blank=True, null=True, verbose_name="Dica de Imagem")

    criado_em = models.DateTimeField(default=timezone.now, verbose_name="Criado em")
    atualizado_em = models.DateTimeField(default=timezone.now, verbose_name="Atualizado em")

    class Meta:
        verbose_name = "Item do Cardápio"
        verbose_name_plural = "Itens do Cardápio"
        db_table = 'menu_items'
        ordering = ['categoria', 'nome']

    def __str__(self):
        return f"{self.nome} (R$ {self.preco})"
