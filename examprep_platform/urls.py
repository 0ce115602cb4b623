from django.contrib import admin
from django.urls import path, include
from rest_framework.routers import DefaultRouter

from exams.views import ExamViewSet, QuestionViewSet
from assessments.views import TestAttemptViewSet

# Router
router = DefaultRouter()
router.register(r'exams', ExamViewSet, basename='exams')
router.register(r'questions', QuestionViewSet, basename='questions')
router.register(r'test-attempts', TestAttemptViewSet, basename='test-attempts')

urlpatterns = [
    path('admin/', admin.site.urls),

    # --- Authentication ---
    path('api/auth/', include('users.urls')),

    # --- Standard API Routes ---
    path('api/', include(router.urls)),
]
