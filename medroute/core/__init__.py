# medroute/core/__init__.py
"""
Ядро: маршруты, отрисовка, отслеживание, навигация, поиск медучреждений.
"""
