from django.urls import path

from . import views

urlpatterns = [
    path("sync", views.sync_push, name="sync_push"),
    path("sync/status", views.sync_status, name="sync_status"),
    path("sync/test", views.sync_test, name="sync_test"),
    path("sync/last-sync", views.sync_last, name="sync_last"),
    path("potential-customers", views.potential_customers, name="potential_customers"),
]
