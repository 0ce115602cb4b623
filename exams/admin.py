from django.contrib import admin

from .models import Exam, Question, Option


class OptionInline(admin.TabularInline):
    model = Option
    extra = 0


@admin.register(Question)
class QuestionAdmin(admin.ModelAdmin):
    list_display = ('id', 'exam', 'question_type', 'points', 'negative_points', 'sort_order')
    list_filter = ('question_type',)
    inlines = [OptionInline]


admin.site.register(Exam)
