# VQS billing: invoices (Flask) with Google Sheets storage + reportlab PDF
# - Totals, amount in words and display status are pure functions
# - PDF layout lives in vqs_billing.pdf, web layer in vqs_billing.app

__version__ = "0.1.0"
