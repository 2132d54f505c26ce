from rest_framework import status
from rest_framework.test import APITestCase

from elearning.tests.helpers import make_course, make_user

"""
    Test Script für die Token-Ausgabe und die Authentifizierung über
    Cookie oder Authorization-Header.
"""


class TokenTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user(username="testUser")
        cls.course = make_course(lectures=1)

    def setUp(self):
        response = self.client.post(
            "/api/elearning/token/",
            {"username": "testUser", "password": "Musterpassword"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.access = response.json()["access"]
        self.refresh = response.json()["refresh"]
        self.protected = f"/api/elearning/progress/{self.course.id}/"

    def test_wrong_password(self):
        response = self.client.post(
            "/api/elearning/token/",
            {"username": "testUser", "password": "falsch"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_bearer_header(self):
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {self.access}")
        response = self.client.get(self.protected)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_access_token_cookie(self):
        self.client.cookies["access_token"] = self.access
        response = self.client.get(self.protected)
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_bad_cookie_is_rejected(self):
        self.client.cookies["access_token"] = "bad token"
        response = self.client.get(self.protected)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_no_credentials(self):
        response = self.client.get(self.protected)
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_refresh_token_success(self):
        response = self.client.post(
            "/api/elearning/token/refresh/", {"refresh": self.refresh}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIn("access", response.json())

    def test_refresh_token_failure(self):
        response = self.client.post(
            "/api/elearning/token/refresh/", {"refresh": "bad token"}, format="json"
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
