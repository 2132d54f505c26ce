"""
Reconcile Purchases Management Command - DSP (Digital Solutions Platform)

Dieses Management Command gleicht Kurskäufe mit dem erwarteten Zustand ab.

Features:
- Erkennt abgeschlossene Käufe ohne Einschreibung (entitlements_granted_at leer)
  und führt die idempotente Freischaltung erneut aus
- Optional (--sync-pending): fragt offene Checkout Sessions bei Stripe ab und
  schließt bezahlte Käufe ab, deren Webhook nie angekommen ist
- Trockenlauf (--dry-run) für Monitoring

Author: DSP Development Team
Created: 03.09.2025
Version: 1.0.0
"""

import logging

from django.core.management.base import BaseCommand, CommandError

from core.exceptions import GatewayException
from core.stripe_integration.gateway import get_payment_gateway
from elearning.purchases.models import CoursePurchase
from elearning.purchases.services import WebhookReconciler, grant_entitlements

logger = logging.getLogger(__name__)

PAID_STATUSES = {"paid", "no_payment_required"}


class Command(BaseCommand):
    """
    Django Management Command für den Abgleich von Kurskäufen.

    Läuft gefahrlos mehrfach: jeder Schritt ist idempotent.
    """

    help = (
        "Führt die Einschreibung für abgeschlossene Käufe ohne Freischaltung erneut aus "
        "und gleicht mit --sync-pending offene Käufe mit Stripe ab."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--sync-pending",
            action="store_true",
            help="Offene Käufe bei Stripe abfragen und bezahlte abschließen.",
        )
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Nur anzeigen, nichts verändern.",
        )

    def handle(self, *args, **options):
        dry_run = options["dry_run"]

        try:
            repaired = self._repair_entitlements(dry_run)
            synced = self._sync_pending(dry_run) if options["sync_pending"] else 0
        except Exception as e:
            logger.error(f"Fehler beim Ausführen von reconcile_purchases: {e}", exc_info=True)
            raise CommandError(f"Ein Fehler ist aufgetreten: {e}")

        self.stdout.write(
            self.style.SUCCESS(
                f"{repaired} Einschreibung(en) nachgeholt, {synced} offene(r) Kauf/Käufe abgeschlossen."
            )
        )

    def _repair_entitlements(self, dry_run: bool) -> int:
        missing = CoursePurchase.objects.filter(
            status=CoursePurchase.Status.COMPLETED,
            entitlements_granted_at__isnull=True,
        ).order_by("completed_at")

        count = 0
        for purchase in missing:
            self.stdout.write(
                f"  - Kauf {purchase.pk}: user={purchase.user_id}, course={purchase.course_id}"
            )
            if not dry_run:
                grant_entitlements(purchase)
            count += 1
        return count

    def _sync_pending(self, dry_run: bool) -> int:
        gateway = get_payment_gateway()
        reconciler = WebhookReconciler(gateway)

        pending = CoursePurchase.objects.filter(
            status=CoursePurchase.Status.PENDING,
            payment_session_id__isnull=False,
        ).order_by("created_at")

        count = 0
        for purchase in pending:
            try:
                session = gateway.retrieve_checkout_session(purchase.payment_session_id)
            except GatewayException as e:
                # einzelne Session überspringen, Rest weiter abgleichen
                logger.warning(
                    "Session %s konnte nicht abgefragt werden: %s",
                    purchase.payment_session_id,
                    e.details,
                )
                continue

            if session.payment_status not in PAID_STATUSES:
                continue

            self.stdout.write(f"  - Kauf {purchase.pk} bei Stripe bezahlt ({session.id})")
            if dry_run:
                count += 1
                continue

            outcome = reconciler.complete_purchase(
                session.id,
                amount_total=session.amount_total,
                payment_intent=session.payment_intent if isinstance(session.payment_intent, str) else None,
            )
            if outcome.processed:
                count += 1
        return count
