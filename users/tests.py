from rest_framework import status
from rest_framework.test import APITestCase

from users.models import User


class RegistrationTests(APITestCase):
    def test_register_creates_student(self):
        response = self.client.post('/api/auth/register/', {
            'email': 'learner@example.com',
            'first_name': 'Ada',
            'last_name': 'Lovelace',
            'password': 'a-long-password',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(email='learner@example.com')
        self.assertEqual(user.role, User.Role.STUDENT)
        self.assertTrue(user.check_password('a-long-password'))

    def test_login_returns_tokens_and_user(self):
        User.objects.create_user(
            username='learner@example.com', email='learner@example.com', password='a-long-password'
        )
        response = self.client.post('/api/auth/login/', {
            'email': 'learner@example.com',
            'password': 'a-long-password',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn('access', response.data)
        self.assertEqual(response.data['user']['email'], 'learner@example.com')
