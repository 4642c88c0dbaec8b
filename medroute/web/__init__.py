# medroute/web/__init__.py
"""
Веб-интерфейс на NiceGUI: карта Kakao Maps и геолокация браузера.
"""
