from django.contrib import admin

from .models import Case, CaseComment, CaseDocument


class CaseCommentInline(admin.TabularInline):
    model = CaseComment
    extra = 0
    readonly_fields = ("author_id", "is_system", "created_at")


class CaseDocumentInline(admin.TabularInline):
    model = CaseDocument
    extra = 0
    readonly_fields = ("file_name", "file_url", "uploaded_by", "uploaded_at")


@admin.register(Case)
class CaseAdmin(admin.ModelAdmin):
    list_display = ("id", "case_number", "title", "status", "is_approved",
                    "assigned_officer_id", "reported_at")
    list_filter = ("status", "is_approved", "is_closed", "is_archived")
    search_fields = ("case_number", "title", "description", "assigned_officer_id")
    readonly_fields = ("reported_at", "previous_officer_id")
    inlines = [CaseCommentInline, CaseDocumentInline]


@admin.register(CaseComment)
class CaseCommentAdmin(admin.ModelAdmin):
    list_display = ("case", "author_id", "is_system", "created_at")
    list_filter = ("is_system",)


@admin.register(CaseDocument)
class CaseDocumentAdmin(admin.ModelAdmin):
    list_display = ("case", "file_name", "uploaded_by", "uploaded_at")
    search_fields = ("file_name",)
