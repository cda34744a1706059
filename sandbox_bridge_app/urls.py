from __future__ import annotations

from django.urls import path

from . import views


app_name = "sandbox_bridge_app"

urlpatterns = [
    path("health", views.health, name="health"),
    path("accept-invitation", views.accept_invitation, name="accept_invitation"),
    path("cost-information", views.cost_information, name="cost_information"),
    path("govcloud-accounts", views.create_govcloud_account, name="create_govcloud_account"),
    path("govcloud-accounts/<str:request_id>", views.govcloud_account_status, name="govcloud_account_status"),
]
