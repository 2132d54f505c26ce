"""
E-Learning Purchases Package - DSP (Digital Solutions Platform)

Dieses Paket enthält den Kaufprozess für Kurse:
- Erstellung von Stripe Checkout Sessions
- Verarbeitung der Stripe Webhooks (idempotent)
- Freischaltung von Lektionen und Einschreibung nach erfolgreicher Zahlung

Author: DSP Development Team
Version: 1.0.0
"""
