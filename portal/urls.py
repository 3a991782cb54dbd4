"""URL configuration for the translation request portal.

The portal renders server-side pages and proxies file downloads from the
backend. Owner pages live under `requests/`, administrator pages under
`manage/`.
"""

from __future__ import annotations

from django.urls import path

from web import views

urlpatterns = [
    path("", views.home, name="home"),
    path("login/", views.login_view, name="login"),
    path("register/", views.register_view, name="register"),
    path("logout/", views.logout_view, name="logout"),
    path("profile/", views.profile_view, name="profile"),

    path("requests/", views.user_dashboard_view, name="user_dashboard"),
    path("requests/new/", views.request_create_view, name="request_create"),
    path("requests/<uuid:request_id>/", views.request_detail_view, name="request_detail"),
    path("requests/<uuid:request_id>/modify/", views.request_modify_view, name="request_modify"),
    path("requests/<uuid:request_id>/delete/", views.request_delete_view, name="request_delete"),
    path("requests/<uuid:request_id>/resubmit/", views.request_resubmit_view, name="request_resubmit"),
    path("requests/<uuid:request_id>/original/", views.request_download_original_view, name="request_download_original"),
    path("requests/<uuid:request_id>/translated/", views.request_download_translated_view, name="request_download_translated"),

    path("manage/", views.admin_dashboard_view, name="admin_dashboard"),
    path("manage/requests/<uuid:request_id>/", views.admin_request_detail_view, name="admin_request_detail"),
    path("manage/requests/<uuid:request_id>/approve/", views.admin_approve_view, name="admin_request_approve"),
    path("manage/requests/<uuid:request_id>/reject/", views.admin_reject_view, name="admin_request_reject"),
    path("manage/requests/<uuid:request_id>/complete/", views.admin_complete_view, name="admin_request_complete"),
    path("manage/requests/<uuid:request_id>/original/", views.admin_download_original_view, name="admin_download_original"),
    path("manage/requests/<uuid:request_id>/translated/", views.admin_download_translated_view, name="admin_download_translated"),
    path("manage/users/", views.admin_users_view, name="admin_users"),
    path("manage/users/<str:user_id>/", views.admin_user_detail_view, name="admin_user_detail"),
]
