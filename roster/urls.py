from django.urls import path

from . import views


app_name = "roster"

urlpatterns = [
    path("session/", views.create_session, name="create_session"),
    path("session/<str:code>/", views.roster_detail, name="roster_detail"),
    path("session/<str:code>/participants/", views.add_participants, name="add_participants"),
    path(
        "session/<str:code>/participants/<str:participant_id>/",
        views.remove_participant,
        name="remove_participant",
    ),
    path("session/<str:code>/upload/", views.upload_participants, name="upload_participants"),
    path("session/<str:code>/sample/", views.add_sample_participants, name="add_sample"),
    path("session/<str:code>/dedupe/", views.deduplicate, name="deduplicate"),
    path("session/<str:code>/clear/", views.clear_roster, name="clear"),
]
