import unittest

from storefront.mail.transport import InMemoryMailer, MailError

from _support import OPERATOR, RpcTestCase


INQUIRY = {
    "name": "Jo <script>",
    "email": "jo@customer.io",
    "subject": "Bulk order",
    "message": "Hello\nDo you ship abroad?",
}


class MailSendTests(RpcTestCase):
    def test_send_delivers_to_operator(self):
        out = self.data(self.mutation("mail.send", INQUIRY))
        self.assertTrue(out["success"])
        self.assertTrue(out["message"])

        self.assertEqual(len(self.mailer.outbox), 1)
        msg = self.mailer.outbox[0]
        self.assertEqual(msg["To"], OPERATOR)
        self.assertEqual(msg["From"], "store@shopfront.io")
        self.assertEqual(msg["Reply-To"], "jo@customer.io")
        self.assertEqual(msg["Subject"], "[Inquiry] Bulk order")

        html = msg.get_body(preferencelist=("html",)).get_content()
        self.assertIn("Jo &lt;script&gt;", html)
        self.assertIn("Hello<br />Do you ship abroad?", html)

    def test_blank_fields_are_rejected(self):
        for field in ("name", "subject", "message"):
            with self.subTest(field=field):
                payload = dict(INQUIRY, **{field: ""})
                err = self.error(self.mutation("mail.send", payload), "BAD_REQUEST")
                self.assertIn(field, err["data"]["fieldErrors"])
        self.error(self.mutation("mail.send", dict(INQUIRY, email="nope")), "BAD_REQUEST")
        self.assertEqual(self.mailer.outbox, [])


class _BrokenMailer(InMemoryMailer):
    def send(self, message):
        raise MailError("smtp_error: connection refused")


class MailFailureTests(RpcTestCase):
    def make_mailer(self):
        return _BrokenMailer()

    def test_transport_failure_is_internal_error(self):
        resp = self.mutation("mail.send", INQUIRY)
        self.assertEqual(resp.status_code, 500)
        err = self.error(resp, "INTERNAL_SERVER_ERROR")
        self.assertNotIn("connection refused", err["message"])


class MailUnconfiguredTests(RpcTestCase):
    config_overrides = {"MAIL_TO": None}

    def test_missing_operator_address_is_internal_error(self):
        self.error(self.mutation("mail.send", INQUIRY), "INTERNAL_SERVER_ERROR")
        self.assertEqual(self.mailer.outbox, [])


if __name__ == "__main__":
    unittest.main()
