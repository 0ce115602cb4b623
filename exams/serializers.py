# exams/serializers.py
from rest_framework import serializers
from .models import Exam, Question, Option

# --- Helper Serializers ---

class OptionSerializer(serializers.ModelSerializer):
    class Meta:
        model = Option
        fields = ['id', 'key', 'text', 'is_correct']

class CandidateOptionSerializer(serializers.ModelSerializer):
    """Options as shown to a student: no correctness flag."""
    class Meta:
        model = Option
        fields = ['key', 'text']

# --- Question Serializers ---

class QuestionSerializer(serializers.ModelSerializer):
    options = OptionSerializer(many=True, required=False)
    exam_title = serializers.CharField(source='exam.title', read_only=True)

    class Meta:
        model = Question
        fields = [
            'id', 'exam', 'exam_title', 'text', 'question_type', 'points',
            'negative_points', 'correct_answer', 'options', 'explanation', 'sort_order',
        ]
        extra_kwargs = {
            'points': {'required': False},
            'negative_points': {'required': False},
        }

    def validate(self, attrs):
        q_type = attrs.get('question_type', getattr(self.instance, 'question_type', Question.QuestionType.MCQ))
        answer = attrs.get('correct_answer', getattr(self.instance, 'correct_answer', None))
        options = attrs.get('options')

        if q_type == Question.QuestionType.MCQ:
            if options is not None and not any(opt.get('is_correct') for opt in options):
                raise serializers.ValidationError({"options": "At least one option must be marked correct."})
            if options is None and self.instance is None:
                raise serializers.ValidationError({"options": "Multiple choice questions need options."})
        elif q_type == Question.QuestionType.TRUE_FALSE:
            if not isinstance(answer, bool):
                raise serializers.ValidationError({"correct_answer": "Must be true or false."})
        elif q_type == Question.QuestionType.FILL_BLANK:
            values = answer if isinstance(answer, list) else [answer]
            if not values or not all(isinstance(v, str) and v.strip() for v in values):
                raise serializers.ValidationError(
                    {"correct_answer": "Must be a string or a list of acceptable strings."}
                )
        elif q_type == Question.QuestionType.SUBJECTIVE:
            if answer is not None and not (isinstance(answer, list) and all(isinstance(v, str) for v in answer)):
                raise serializers.ValidationError({"correct_answer": "Must be a list of keywords."})
        return attrs

    def create(self, validated_data):
        options_data = validated_data.pop('options', [])
        exam = validated_data['exam']

        # Fall back to the exam's defaults for unspecified point values
        validated_data.setdefault('points', exam.default_points)
        validated_data.setdefault('negative_points', exam.default_negative_points)

        question = Question.objects.create(**validated_data)
        for opt in options_data:
            Option.objects.create(question=question, **opt)
        return question

    def update(self, instance, validated_data):
        options_data = validated_data.pop('options', None)
        question = super().update(instance, validated_data)

        # Options are replaced wholesale when provided
        if options_data is not None:
            question.options.all().delete()
            for opt in options_data:
                Option.objects.create(question=question, **opt)
        return question

class CandidateQuestionSerializer(serializers.ModelSerializer):
    """Question as shown to a student taking the test; answer keys are hidden."""
    options = CandidateOptionSerializer(many=True, read_only=True)

    class Meta:
        model = Question
        fields = ['id', 'text', 'question_type', 'points', 'negative_points', 'options', 'sort_order']

# --- Exam Serializers ---

class ExamSerializer(serializers.ModelSerializer):
    total_questions = serializers.IntegerField(source='questions.count', read_only=True)

    class Meta:
        model = Exam
        fields = [
            'id', 'title', 'description', 'course_id', 'duration_minutes',
            'passing_score', 'default_points', 'default_negative_points',
            'is_active', 'created_by', 'created_at', 'total_questions',
        ]
        read_only_fields = ['created_by', 'created_at']

class ExamListSerializer(serializers.ModelSerializer):
    class Meta:
        model = Exam
        fields = ['id', 'title', 'course_id', 'duration_minutes', 'passing_score', 'is_active']
