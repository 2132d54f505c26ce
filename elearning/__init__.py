"""
E-Learning Package - DSP (Digital Solutions Platform)

Dieses Paket enthält die Online-Kursplattform: Kurskatalog, Kursverkauf über
Stripe Checkout und Fortschrittsverfolgung der Lernenden.

Features:
- Kurse mit geordneten Lektionen und Vorschau-Freigabe
- Checkout Sessions und idempotente Verarbeitung der Stripe Webhooks
- Automatische Einschreibung und Freischaltung nach erfolgreicher Zahlung
- Fortschrittsverfolgung pro Lektion mit abgeleitetem Kursabschluss

Struktur:
- courses/: Kurskatalog und Lektionen
- purchases/: Kaufprozess und Zahlungsstatus
- progress/: Fortschrittsverfolgung
- management/: Django Management Commands

Author: DSP Development Team
Created: 10.07.2025
Version: 1.0.0
"""
