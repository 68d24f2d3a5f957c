"""Личный дневник: API записей в markdown поверх S3 и клиентские помощники."""
