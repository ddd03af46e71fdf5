from django.urls import path

from . import views

urlpatterns = [
    path("reading-list/", views.ReadingListView.as_view(), name="reading-list"),
    path("progress/", views.ProgressUpsertView.as_view(), name="reading-progress"),
    path("progress/<uuid:comic_id>/", views.ComicProgressView.as_view(), name="reading-progress-comic"),
]
