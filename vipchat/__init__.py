# Lojista VIP chat: broadcast + direct messaging core and HTTP service

__version__ = "0.1.0"
