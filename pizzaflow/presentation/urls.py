"""
Define as rotas da API REST: públicas (cliente) e administrativas (painel).
"""
from django.urls import path

from . import views, views_admin


urlpatterns = [
    # ====================================================================
    # 1. ROTAS PÚBLICAS (CLIENTE)
    # ====================================================================
    path('api/cardapio/', views.CardapioAPIView.as_view(), name='api_cardapio'),
    path('api/pedidos/', views.CriarPedidoAPIView.as_view(), name='api_criar_pedido'),
    path('api/pedidos/<str:pedido_id>/', views.StatusPedidoAPIView.as_view(), name='api_status_pedido'),
    path('api/cupons/validar/', views.ValidarCupomAPIView.as_view(), name='api_validar_cupom'),
    path('api/cep/<str:cep>/', views.BuscarCepAPIView.as_view(), name='api_buscar_cep'),

    # ====================================================================
    # 2. ROTAS ADMINISTRATIVAS
    # ====================================================================
    # Cadastros
    path('api/admin/cardapio/', views_admin.CardapioAdminListView.as_view(), name='admin_cardapio'),
    path('api/admin/cardapio/<str:item_id>/', views_admin.CardapioAdminDetailView.as_view(), name='admin_item_cardapio'),
    path('api/admin/cupons/', views_admin.CuponsAdminListView.as_view(), name='admin_cupons'),
    path('api/admin/cupons/<str:cupom_id>/', views_admin.CupomAdminDetailView.as_view(), name='admin_cupom'),
    path('api/admin/entregadores/', views_admin.EntregadoresAdminListView.as_view(), name='admin_entregadores'),
    path('api/admin/entregadores/<str:entregador_id>/', views_admin.EntregadorAdminDetailView.as_view(), name='admin_entregador'),

    # Pedidos
    path('api/admin/status/', views_admin.StatusConfigView.as_view(), name='admin_status_config'),
    path('api/admin/pedidos/', views_admin.PedidosAdminListView.as_view(), name='admin_pedidos'),
    path('api/admin/pedidos/exportar/', views_admin.ExportarPedidosCsvView.as_view(), name='admin_exportar_csv'),
    path('api/admin/pedidos/<str:pedido_id>/', views_admin.PedidoAdminDetailView.as_view(), name='admin_pedido'),
    path('api/admin/pedidos/<str:pedido_id>/transicao/', views_admin.TransicionarPedidoView.as_view(), name='admin_transicao_pedido'),
    path('api/admin/pedidos/<str:pedido_id>/pagamento/', views_admin.RegistrarPagamentoView.as_view(), name='admin_pagamento_pedido'),
    path('api/admin/pedidos/<str:pedido_id>/rota/', views_admin.RotaPedidoView.as_view(), name='admin_rota_pedido'),

    # Despacho e Dashboard
    path('api/admin/rotas/planejar/', views_admin.PlanejarRotaView.as_view(), name='admin_planejar_rota'),
    path('api/admin/despachar/', views_admin.DespacharMultiplosView.as_view(), name='admin_despachar'),
    path('api/admin/dashboard/', views_admin.DashboardAnaliseView.as_view(), name='admin_dashboard'),
]
