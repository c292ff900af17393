from django.urls import path

from . import views


app_name = "luckydraw"

urlpatterns = [
    path("session/<str:code>/", views.draw_status, name="draw_status"),
    path("session/<str:code>/draw/", views.draw, name="draw"),
    path("session/<str:code>/winners/clear/", views.clear_winners, name="clear_winners"),
]
