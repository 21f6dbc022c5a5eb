# order_desk/application/receipt.py
from dataclasses import dataclass
from datetime import datetime
from html import escape
from string import Template
from typing import Optional

from order_desk.domain.entities import Order
from order_desk.application.bill_calculator import round_money


@dataclass(frozen=True)
class BusinessProfile:
    """Datos del negocio que encabezan el recibo."""
    name: str
    address: str
    phone: str


RECEIPT_TEMPLATE = Template("""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Receipt - $customer_name</title>
  <style>
    body { font-family: Arial, sans-serif; margin: 20px; color: #333; }
    .header { text-align: center; margin-bottom: 30px; }
    .company-name { font-size: 24px; font-weight: bold; color: #7F1D1D; margin: 10px 0; }
    .company-info { font-size: 14px; color: #666; margin: 5px 0; }
    .customer-section { margin: 30px 0; border-bottom: 2px solid #7F1D1D; padding-bottom: 15px; }
    .customer-title { font-size: 18px; font-weight: bold; color: #7F1D1D; margin-bottom: 10px; }
    .customer-info { display: flex; justify-content: space-between; margin: 5px 0; }
    .products-table { width: 100%; border-collapse: collapse; margin: 20px 0; }
    .products-table th, .products-table td { border: 1px solid #ddd; padding: 12px; text-align: left; }
    .products-table th { background-color: #7F1D1D; color: white; font-weight: bold; }
    .products-table tr:nth-child(even) { background-color: #f9f9f9; }
    .total-section { margin-top: 20px; text-align: right; }
    .total-amount { font-size: 20px; font-weight: bold; color: #7F1D1D; }
    .footer { margin-top: 40px; text-align: center; font-size: 14px; color: #7F1D1D; font-weight: bold; }
    .footer-note { margin-top: 10px; font-size: 12px; color: #666; font-weight: normal; }
    @media print { body { margin: 0; } }
  </style>
</head>
<body>
  <div class="header">
    <div class="company-name">$business_name</div>
    <div class="company-info">$business_address</div>
    <div class="company-info">Phone: $business_phone</div>
  </div>

  <div class="customer-section">
    <div class="customer-title">Customer Details</div>
    <div class="customer-info">
      <span><strong>Name:</strong> $customer_name</span>
      <span><strong>Date:</strong> $order_date</span>
    </div>
    <div class="customer-info">
      <span><strong>Phone:</strong> $customer_phone</span>
    </div>
    <div class="customer-info">
      <span><strong>Village:</strong> $customer_village</span>
    </div>
  </div>

  <table class="products-table">
    <thead>
      <tr>
        <th>S.No</th>
        <th>Item</th>
        <th>Quantity</th>
      </tr>
    </thead>
    <tbody>
$product_rows
    </tbody>
  </table>

  <div class="total-section">
    <div class="total-amount">Total Amount: &#8377;$total_amount</div>
  </div>

  <div class="footer">
    <p>Thank you for choosing $business_name!</p>
    <p class="footer-note">This is a computer generated receipt.</p>
  </div>
</body>
</html>
""")

ROW_TEMPLATE = Template("""      <tr>
        <td>$position</td>
        <td>$item</td>
        <td>$quantity</td>
      </tr>""")


def format_receipt_date(value: Optional[datetime]) -> str:
    """dd/mm/aaaa, o 'N/A' si el pedido no tiene fecha de creación."""
    if value is None:
        return "N/A"
    return value.strftime("%d/%m/%Y")


def format_quantity(value) -> str:
    # 2.0 -> "2", 0.5 -> "0.5"
    text = format(value, "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text or "0"


def render_receipt(order: Order, business: BusinessProfile) -> str:
    """Genera el documento HTML imprimible del pedido. No tiene efectos secundarios."""
    rows = "\n".join(
        ROW_TEMPLATE.substitute(
            position=index,
            item=escape(product.name),
            quantity=escape(format_quantity(product.quantity)),
        )
        for index, product in enumerate(order.products, start=1)
    )
    return RECEIPT_TEMPLATE.substitute(
        business_name=escape(business.name),
        business_address=escape(business.address),
        business_phone=escape(business.phone),
        customer_name=escape(order.name or ""),
        customer_phone=escape(order.phone or ""),
        customer_village=escape(order.village or ""),
        order_date=format_receipt_date(order.created_at),
        product_rows=rows,
        total_amount=f"{round_money(order.total_bill):.2f}",
    )
