from django.urls import path

from . import views


app_name = "grouping"

urlpatterns = [
    path("session/<str:code>/", views.grouping, name="grouping"),
    path("session/<str:code>/export/", views.export_csv, name="export_csv"),
]
