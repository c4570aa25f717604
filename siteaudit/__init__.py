"""
siteaudit: Lighthouse threshold checks for a configured set of pages.

Аудит страниц через PageSpeed Insights или локальный Lighthouse:
- Загрузка и слияние конфигурации (группы)
- Пакетный запуск аудитов по стратегиям (mobile/desktop)
- Сохранение сырых результатов в JSON
- Оценка по порогам и код возврата для CI

Usage:
    siteaudit lighthouse.json production
"""

__version__ = "1.0.0"
