"""
API URL Configuration
"""
from django.urls import path

from . import views

app_name = 'api'

urlpatterns = [
    # Auth
    path('auth/register/', views.RegisterView.as_view(), name='auth-register'),
    path('auth/login/', views.LoginView.as_view(), name='auth-login'),
    path('auth/refresh/', views.RefreshTokenView.as_view(), name='auth-refresh'),
    path('auth/logout/', views.LogoutView.as_view(), name='auth-logout'),
    path('auth/me/', views.MeView.as_view(), name='auth-me'),

    # Shop and public storefront
    path('shop/', views.ShopView.as_view(), name='shop'),
    path('shop/public/<slug:slug>/', views.PublicShopView.as_view(), name='shop-public'),
    path('shop/public/<slug:slug>/products/', views.PublicProductListView.as_view(), name='shop-public-products'),
    path('shop/public/<slug:slug>/orders/', views.PublicOrderCreateView.as_view(), name='shop-public-orders'),

    # Products
    path('products/', views.ProductListView.as_view(), name='products'),
    path('products/alerts/low-stock/', views.LowStockView.as_view(), name='products-low-stock'),
    path('products/<uuid:product_id>/', views.ProductDetailView.as_view(), name='product-detail'),

    # Customers
    path('customers/', views.CustomerListView.as_view(), name='customers'),
    path('customers/<uuid:customer_id>/', views.CustomerDetailView.as_view(), name='customer-detail'),

    # Orders
    path('orders/', views.OrderListView.as_view(), name='orders'),
    path('orders/<uuid:order_id>/', views.OrderDetailView.as_view(), name='order-detail'),
    path('orders/<uuid:order_id>/status/', views.OrderStatusView.as_view(), name='order-status'),
    path('orders/<uuid:order_id>/payment/', views.OrderPaymentView.as_view(), name='order-payment'),
    path('orders/<uuid:order_id>/send-whatsapp/', views.OrderWhatsAppView.as_view(), name='order-send-whatsapp'),

    # WhatsApp
    path('whatsapp/send/', views.SendMessageView.as_view(), name='whatsapp-send'),
    path('whatsapp/campaign/', views.CampaignView.as_view(), name='whatsapp-campaign'),
    path('whatsapp/messages/', views.MessageHistoryView.as_view(), name='whatsapp-messages'),

    # AI
    path('ai/query/', views.AIQueryView.as_view(), name='ai-query'),
    path('ai/suggestions/', views.AISuggestionsView.as_view(), name='ai-suggestions'),
    path('ai/campaign-message/', views.AICampaignMessageView.as_view(), name='ai-campaign-message'),

    # Payments
    path('payments/plans/', views.PlanListView.as_view(), name='payment-plans'),
    path('payments/create-order/', views.CreatePaymentOrderView.as_view(), name='payment-create-order'),
    path('payments/verify/', views.VerifyPaymentView.as_view(), name='payment-verify'),
    path('payments/history/', views.PaymentHistoryView.as_view(), name='payment-history'),

    # Analytics
    path('analytics/dashboard/', views.DashboardView.as_view(), name='analytics-dashboard'),
    path('analytics/sales-trends/', views.SalesTrendsView.as_view(), name='analytics-sales-trends'),

    # Health check
    path('health/', views.HealthCheckView.as_view(), name='health'),
]
