from django.urls import path
from .views import login_view, logout_view, settings_view, user_create, user_delete, global_search

app_name = 'core'

urlpatterns = [
    path('login/', login_view, name='login'),
    path('logout/', logout_view, name='logout'),
    path('settings/', settings_view, name='settings'),
    path('settings/users/', user_create, name='user-create'),
    path('settings/users/<str:pk>/delete/', user_delete, name='user-delete'),
    path('api/search/', global_search, name='global-search'),
]
