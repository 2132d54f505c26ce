"""
E-Learning Application Django Admin Configuration

This module provides the Django admin interface for the E-Learning models.

The admin interface is organized into logical sections:
- Course Management: Courses with inline lectures
- Purchases: Read-mostly view of checkout attempts and payment state
- Progress: Per-user course progress with inline lecture entries

Purchases are never deleted and their payment fields are read-only; the
state is owned by the Stripe webhook. The "Grant entitlements" action
re-runs the idempotent enrollment fan-out for selected completed purchases.

Author: DSP Development Team
Version: 1.0.0
"""

from django.contrib import admin, messages
from django.db.models import QuerySet
from django.http import HttpRequest
from django.utils.translation import gettext_lazy as _

# Import all models from the central models registry
from .models import (
    Course,
    Lecture,
    CoursePurchase,
    CourseProgress,
    LectureProgress,
)
from .purchases.services import grant_entitlements

# --- Course Management Administration ---


class LectureInline(admin.TabularInline):
    model = Lecture
    extra = 0
    fields = ("title", "order", "video_url", "is_preview_free")
    ordering = ("order", "id")


@admin.register(Course)
class CourseAdmin(admin.ModelAdmin):
    list_display = ("title", "price", "level", "is_published", "get_lecture_count", "created_at")
    list_filter = ("is_published", "level", "category")
    search_fields = ("title", "subtitle", "description")
    readonly_fields = ("created_at", "updated_at")
    filter_horizontal = ("enrolled_students",)
    inlines = (LectureInline,)

    fieldsets = (
        (
            _("Grundinformationen"),
            {"fields": ("title", "subtitle", "description", "category", "level", "creator")},
        ),
        (_("Verkauf"), {"fields": ("price", "thumbnail", "is_published")}),
        (_("Teilnehmer"), {"fields": ("enrolled_students",)}),
        (
            _("Zeitstempel"),
            {"fields": ("created_at", "updated_at"), "classes": ("collapse",)},
        ),
    )

    @admin.display(description=_("Lectures"))
    def get_lecture_count(self, obj: Course) -> int:
        return obj.lectures.count()


@admin.register(Lecture)
class LectureAdmin(admin.ModelAdmin):
    list_display = ("title", "course", "order", "is_preview_free")
    list_filter = ("is_preview_free", "course")
    search_fields = ("title", "course__title")
    ordering = ("course", "order")


# --- Purchase Administration ---


@admin.register(CoursePurchase)
class CoursePurchaseAdmin(admin.ModelAdmin):
    list_display = (
        "id",
        "user",
        "course",
        "amount",
        "currency",
        "status",
        "completed_at",
        "entitlements_granted_at",
    )
    list_filter = ("status", "currency", "created_at")
    search_fields = ("user__username", "user__email", "course__title", "payment_session_id")
    list_select_related = ("user", "course")
    readonly_fields = (
        "course",
        "user",
        "amount",
        "currency",
        "status",
        "payment_session_id",
        "payment_intent_id",
        "failure_reason",
        "completed_at",
        "entitlements_granted_at",
        "created_at",
        "updated_at",
    )
    actions = ("grant_entitlements_action",)

    def has_add_permission(self, request: HttpRequest) -> bool:
        return False

    def has_delete_permission(self, request: HttpRequest, obj=None) -> bool:
        return False

    @admin.action(description=_("Grant entitlements for selected completed purchases"))
    def grant_entitlements_action(self, request: HttpRequest, queryset: QuerySet) -> None:
        completed = queryset.filter(status=CoursePurchase.Status.COMPLETED)
        for purchase in completed:
            grant_entitlements(purchase)
        self.message_user(
            request,
            _("Entitlements granted for %(count)d purchase(s).") % {"count": completed.count()},
            messages.SUCCESS,
        )


# --- Progress Administration ---


class LectureProgressInline(admin.TabularInline):
    model = LectureProgress
    extra = 0
    fields = ("lecture", "viewed", "viewed_at")
    readonly_fields = ("viewed_at",)


@admin.register(CourseProgress)
class CourseProgressAdmin(admin.ModelAdmin):
    list_display = ("user", "course", "completed", "updated_at")
    list_filter = ("completed",)
    search_fields = ("user__username", "course__title")
    list_select_related = ("user", "course")
    readonly_fields = ("created_at", "updated_at")
    inlines = (LectureProgressInline,)
