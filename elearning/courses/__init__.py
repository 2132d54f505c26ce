"""
E-Learning Courses Package - DSP (Digital Solutions Platform)

Dieses Paket enthält den Kurskatalog: Kurse mit Preis und eingeschriebenen
Teilnehmern sowie die geordneten Lektionen eines Kurses.

Author: DSP Development Team
Version: 1.0.0
"""
