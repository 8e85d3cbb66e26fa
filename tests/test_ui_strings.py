import unittest

from texlink.orders.statuses import ALL_STATUSES
from texlink.ui_strings import ORDER_STATUS_ITEMS, error_message, history_note, status_keys, status_label


class UiStringsTest(unittest.TestCase):
    def test_every_status_has_label_and_description(self) -> None:
        self.assertEqual(status_keys(), list(ALL_STATUSES))
        for item in ORDER_STATUS_ITEMS:
            self.assertTrue((item.get("label") or "").strip(), f"label vazio: {item.get('key')}")
            self.assertTrue((item.get("description") or "").strip(), f"descricao vazia: {item.get('key')}")

    def test_lookups_fall_back(self) -> None:
        self.assertEqual(status_label("NAO_EXISTE"), "NAO_EXISTE")
        self.assertEqual(error_message("chave_inexistente", "padrao"), "padrao")
        self.assertEqual(history_note("review_done", result="PARTIAL"), "Revisao concluida: PARTIAL")


if __name__ == "__main__":
    unittest.main()
