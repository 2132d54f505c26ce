"""
E-Learning Progress Package - DSP (Digital Solutions Platform)

Dieses Paket enthält die Fortschrittsverfolgung pro Benutzer und Kurs:
angesehene Lektionen und der daraus abgeleitete Abschlussstatus.

Author: DSP Development Team
Version: 1.0.0
"""
