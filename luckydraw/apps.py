from django.apps import AppConfig


class LuckyDrawConfig(AppConfig):
    name = "luckydraw"
    verbose_name = "Lucky draw"
