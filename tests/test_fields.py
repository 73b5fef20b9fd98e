"""
Tests for structured field extraction used by smart naming.
"""

from datetime import date

import pytest

from scannamer import fields
from scannamer.fields import DocumentClass


class TestClassify:
    """Tests for keyword classification."""

    def test_invoice_wins_over_receipt(self):
        """Invoice keywords are checked first."""
        assert fields.classify("Receipt\nTotal 12.00") is DocumentClass.INVOICE

    def test_receipt(self):
        assert fields.classify("Thank you for shopping") is DocumentClass.RECEIPT

    def test_receipt_wins_over_letter(self):
        assert fields.classify("Dear customer, thank you") is DocumentClass.RECEIPT

    def test_letter(self):
        assert fields.classify("Kind regards,\nAnna") is DocumentClass.LETTER

    def test_case_insensitive(self):
        assert fields.classify("DUE DATE: tomorrow") is DocumentClass.INVOICE

    def test_unclassified(self):
        assert fields.classify("Meeting notes") is None


class TestHeaderLines:
    """Tests for header-like line detection."""

    @pytest.mark.parametrize("line", ["12", "Page 3", "page 10 of 12", "1/2/2024", "01-12-24"])
    def test_header_like(self, line):
        assert fields.is_header_line(line)

    @pytest.mark.parametrize("line", ["Invoice 12", "Pages", "12 apples"])
    def test_not_header_like(self, line):
        assert not fields.is_header_line(line)


class TestInvoiceNumber:
    """Tests for invoice number extraction."""

    def test_labelled_number(self):
        assert fields.extract_invoice_number("Invoice No. INV-2024-17") == "INV-2024-17"

    def test_hash_number(self):
        assert fields.extract_invoice_number("INVOICE #4521") == "4521"

    def test_inv_prefix(self):
        assert fields.extract_invoice_number("Ref INV-0093") == "0093"

    def test_bill_number(self):
        assert fields.extract_invoice_number("Bill # 77") == "77"

    def test_missing(self):
        assert fields.extract_invoice_number("Payment due soon") is None


class TestVendor:
    """Tests for vendor extraction order."""

    def test_label_first(self):
        """A From:/Vendor: label wins over a suffixed company name."""
        text = "Globex Corp\nFrom: Initech Systems"
        assert fields.extract_vendor(text) == "Initech_Systems"

    def test_corporate_suffix(self):
        assert fields.extract_vendor("Billing by Stark Industries Inc today") == "Stark_Industries"

    def test_short_capitalized_line(self):
        """Header-like lines are skipped when looking at the first lines."""
        assert fields.extract_vendor("12\nCorner Cafe\nlatte") == "Corner_Cafe"

    def test_missing(self):
        assert fields.extract_vendor("lowercase only text\nmore") is None

    def test_clean_company_name(self):
        assert fields.clean_company_name("Wayne & Sons Co.") == "Wayne_Sons"


class TestDate:
    """Tests for date extraction."""

    def test_day_first(self):
        assert fields.extract_date("Date: 05-04-2024") == date(2024, 4, 5)

    def test_month_first_when_day_first_invalid(self):
        """04/25/2024 is not a valid D/M/Y date and is read as M/D/Y."""
        assert fields.extract_date("Issued 04/25/2024") == date(2024, 4, 25)

    def test_year_first(self):
        assert fields.extract_date("2023-11-02 statement") == date(2023, 11, 2)

    def test_two_digit_year(self):
        assert fields.extract_date("on 01-02-24") == date(2024, 2, 1)

    def test_month_name_first(self):
        assert fields.extract_date("March 5, 2024") == date(2024, 3, 5)

    def test_day_then_month_name(self):
        assert fields.extract_date("5 Sept. 2023") == date(2023, 9, 5)

    def test_invalid_calendar_date_skipped(self):
        """An impossible date is skipped in favour of a later valid one."""
        assert fields.extract_date("31-31-2024 then 2024-01-15") == date(2024, 1, 15)

    def test_missing(self):
        assert fields.extract_date("no dates here") is None


class TestAmountAndRecipient:
    """Tests for amount and recipient extraction."""

    def test_dollar_amount_commas_removed(self):
        assert fields.extract_amount("Balance $1,234.56") == "1234.56"

    def test_total_prefixed(self):
        assert fields.extract_amount("Total: 99.95") == "99.95"

    def test_amount_prefixed(self):
        assert fields.extract_amount("Amount 10") == "10"

    def test_amount_missing(self):
        assert fields.extract_amount("nothing to pay") is None

    def test_recipient_with_title(self):
        assert fields.extract_recipient("Dear Dr. Jane Doe,") == "Jane Doe"

    def test_recipient_missing(self):
        assert fields.extract_recipient("To whom it may concern") is None
