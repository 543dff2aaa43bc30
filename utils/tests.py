from django.core.exceptions import ImproperlyConfigured
from django.test import TestCase

from utils.utils import get_class_from_path
from vault.transit.local import LocalTransitClient


class GetClassFromPathTest(TestCase):
    """動態載入類別測試"""

    def test_load_class(self):
        """測試從路徑載入類別"""
        self.assertIs(
            get_class_from_path('vault.transit.local.LocalTransitClient'), LocalTransitClient
        )

    def test_invalid_path(self):
        """測試無效路徑"""
        for path in ('LocalTransitClient', 'vault.missing.Client', 'vault.transit.local.Missing'):
            with self.assertRaises(ImproperlyConfigured):
                get_class_from_path(path)
