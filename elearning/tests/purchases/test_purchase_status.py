from rest_framework import status
from rest_framework.test import APITestCase

from elearning.purchases.models import CoursePurchase
from elearning.tests.helpers import make_course, make_purchase, make_user


class CourseDetailWithPurchaseStatusTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user()
        cls.course = make_course(lectures=2)

    def setUp(self):
        self.client.force_authenticate(user=self.user)

    def url(self, course_id):
        return f"/api/elearning/purchases/course/{course_id}/detail-with-status/"

    def test_not_purchased(self):
        response = self.client.get(self.url(self.course.id))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        body = response.json()
        self.assertFalse(body["purchased"])
        self.assertEqual(body["course"]["id"], self.course.id)
        self.assertEqual(len(body["course"]["lectures"]), 2)

    def test_pending_purchase_is_not_ownership(self):
        make_purchase(self.user, self.course)

        response = self.client.get(self.url(self.course.id))

        self.assertFalse(response.json()["purchased"])

    def test_completed_purchase_is_ownership(self):
        make_purchase(self.user, self.course, status=CoursePurchase.Status.COMPLETED)

        response = self.client.get(self.url(self.course.id))

        self.assertTrue(response.json()["purchased"])

    def test_other_users_purchase_does_not_count(self):
        other = make_user("Erika")
        make_purchase(other, self.course, status=CoursePurchase.Status.COMPLETED)

        response = self.client.get(self.url(self.course.id))

        self.assertFalse(response.json()["purchased"])

    def test_unknown_course(self):
        response = self.client.get(self.url(9999))

        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class PurchasedCoursesTests(APITestCase):
    @classmethod
    def setUpTestData(cls):
        cls.user = make_user()
        cls.admin = make_user("Admin", is_staff=True)
        cls.course = make_course()
        make_purchase(cls.user, cls.course, session_id="cs_done", status=CoursePurchase.Status.COMPLETED)
        make_purchase(cls.user, cls.course, session_id="cs_open")

    def test_lists_only_completed_purchases(self):
        self.client.force_authenticate(user=self.admin)

        response = self.client.get("/api/elearning/purchases/")

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        purchases = response.json()["purchased_courses"]
        self.assertEqual(len(purchases), 1)
        self.assertEqual(purchases[0]["payment_session_id"], "cs_done")
        self.assertEqual(purchases[0]["course"]["id"], self.course.id)

    def test_regular_users_are_forbidden(self):
        self.client.force_authenticate(user=self.user)

        response = self.client.get("/api/elearning/purchases/")

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
