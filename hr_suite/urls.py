from django.urls import include, path


urlpatterns = [
    path("roster/", include("roster.urls")),
    path("luckydraw/", include("luckydraw.urls")),
    path("grouping/", include("grouping.urls")),
]
