# Configuração da interface administrativa do Django para os modelos do PizzaFlow.

from django import forms
from django.contrib import admin, messages
from django.utils import timezone

from pizzaflow.cardapio.models import ItemCardapio
from pizzaflow.cupons.models import Cupom
from pizzaflow.entregas.models import Entregador
from pizzaflow.pedidos.models import Pedido, ItemPedido
from pizzaflow.core import entities
from pizzaflow.core.entities import StatusPedido
from pizzaflow.core.exceptions import DadosInvalidosError
from pizzaflow.core.use_cases import validar_cupom


# ====================================================================
# 1. CARDÁPIO
# ====================================================================

@admin.register(ItemCardapio)
class ItemCardapioAdmin(admin.ModelAdmin):
    list_display = ('nome', 'categoria', 'preco', 'em_promocao', 'atualizado_em')
    list_filter = ('categoria', 'em_promocao')
    search_fields = ('nome', 'descricao')
    ordering = ('categoria', 'nome')


# ====================================================================
# 2. CUPONS E ENTREGADORES
# ====================================================================

class CupomAdminForm(forms.ModelForm):
    """Aplica no admin as mesmas regras de cadastro da API de cupons."""

    class Meta:
        model = Cupom
        fields = (
            'codigo', 'descricao', 'tipo_desconto', 'valor_desconto', 'ativo',
            'expira_em', 'limite_uso', 'valor_minimo_pedido',
        )

    def clean(self):
        cleaned_data = super().clean()
        obrigatorios = ('codigo', 'tipo_desconto', 'valor_desconto')
        if any(cleaned_data.get(campo) is None for campo in obrigatorios):
            # O próprio campo já reportou o erro
            return cleaned_data

        cupom = entities.Cupom(
            codigo=cleaned_data['codigo'],
            tipo_desconto=cleaned_data['tipo_desconto'],
            valor_desconto=cleaned_data['valor_desconto'],
            limite_uso=cleaned_data.get('limite_uso'),
            vezes_usado=self.instance.vezes_usado or 0,
            valor_minimo_pedido=cleaned_data.get('valor_minimo_pedido'),
        )
        try:
            validado = validar_cupom(cupom)
        except DadosInvalidosError as e:
            raise forms.ValidationError(str(e))

        cleaned_data['codigo'] = validado.codigo
        return cleaned_data


@admin.register(Cupom)
class CupomAdmin(admin.ModelAdmin):
    form = CupomAdminForm
    list_display = ('codigo', 'tipo_desconto', 'valor_desconto', 'ativo', 'vezes_usado', 'limite_uso', 'expira_em')
    list_filter = ('ativo', 'tipo_desconto')
    search_fields = ('codigo', 'descricao')
    # O contador só muda pelo incremento condicional na criação do pedido.
    readonly_fields = ('vezes_usado',)

    def has_delete_permission(self, request, obj=None):
        """Cupons são desativados, nunca excluídos."""
        return False

    def save_model(self, request, obj, form, change):
        obj.atualizado_em = timezone.now()
        super().save_model(request, obj, form, change)


def pedidos_em_andamento(entregadores):
    """Pedidos não finalizados dos entregadores informados."""
    return Pedido.objects.filter(entregador_cadastro__in=entregadores).exclude(status__in=StatusPedido.TERMINAIS)


@admin.register(Entregador)
class EntregadorAdmin(admin.ModelAdmin):
    """
    Entregador com pedido em andamento não pode ser excluído: a exclusão
    apagaria o vínculo (SET_NULL) de um pedido que ainda está na rua.
    """
    list_display = ('nome', 'detalhes_veiculo', 'placa', 'ativo')
    list_filter = ('ativo',)
    search_fields = ('nome', 'placa')

    def has_delete_permission(self, request, obj=None):
        if obj is not None and pedidos_em_andamento([obj]).exists():
            return False
        return super().has_delete_permission(request, obj)

    def delete_model(self, request, obj):
        if pedidos_em_andamento([obj]).exists():
            self.message_user(
                request, f"O entregador {obj.nome} tem pedidos em andamento e não foi excluído.", messages.ERROR
            )
            return
        super().delete_model(request, obj)

    def delete_queryset(self, request, queryset):
        ocupados = set(pedidos_em_andamento(queryset).values_list('entregador_cadastro_id', flat=True))
        if ocupados:
            nomes = ", ".join(queryset.filter(pk__in=ocupados).order_by('nome').values_list('nome', flat=True))
            self.message_user(
                request, f"Entregadores com pedidos em andamento não foram excluídos: {nomes}.", messages.WARNING
            )
        super().delete_queryset(request, queryset.exclude(pk__in=ocupados))


# ====================================================================
# 3. PEDIDOS
# ====================================================================

class ItemPedidoInline(admin.TabularInline):
    """Exibe os itens (snapshot) dentro do detalhe do Pedido."""
    model = ItemPedido
    readonly_fields = ('item_cardapio', 'nome', 'preco', 'quantidade', 'observacoes_item', 'subtotal')
    extra = 0
    can_delete = False


@admin.register(Pedido)
class PedidoAdmin(admin.ModelAdmin):
    list_display = ('id_exibicao', 'nome_cliente', 'criado_em', 'valor_total', 'status', 'status_pagamento', 'entregador')
    list_filter = ('status', 'status_pagamento', 'tipo_pagamento', 'criado_em')
    search_fields = ('id', 'id_exibicao', 'nome_cliente', 'endereco_cliente')
    date_hierarchy = 'criado_em'
    inlines = [ItemPedidoInline]
    readonly_fields = (
        'id_exibicao',
        'status',
        'valor_total',
        'codigo_cupom_aplicado',
        'desconto_cupom_aplicado',
        'cupom',
        'criado_em',
        'entregue_em',
    )

    def has_add_permission(self, request):
        """Pedidos só são criados pelo fluxo do cliente."""
        return False
