from typing import Dict, Literal, Tuple

# titles/messages for notifications, plus the email wrapper around them

NotificationKind = Literal[
    "payment_reminder_3day",
    "payment_reminder_1day",
    "payment_overdue",
    "budget_warning",
    "budget_limit_reached",
]


def format_price(amount) -> str:
    return f"Rs.{amount:,}"


def notification_text(kind: NotificationKind, payload: Dict) -> Tuple[str, str]:
    remaining = format_price(payload.get("remaining_amount", 0))
    if kind == "payment_reminder_3day":
        return (
            "Payment Reminder - 3 Days Left",
            f"Your balance payment of {remaining} is due in 3 days. "
            "Please complete your payment to avoid booking suspension.",
        )
    if kind == "payment_reminder_1day":
        return (
            "Urgent: Payment Due Tomorrow",
            f"Your balance payment of {remaining} is due tomorrow! "
            "Please complete your payment immediately to avoid booking suspension.",
        )
    if kind == "payment_overdue":
        return (
            "Payment Overdue - Booking Suspended",
            f"Your payment of {remaining} is overdue. Your booking has been suspended. "
            "Please contact support.",
        )
    if kind == "budget_warning":
        return (
            "Budget Warning",
            f"Your child's monthly transport budget is {payload.get('percentage_used', 0)}% used "
            f"({format_price(payload.get('current_spent', 0))}/{format_price(payload.get('monthly_limit', 0))})",
        )
    if kind == "budget_limit_reached":
        return (
            "Budget Limit Reached",
            "Your child's monthly transport budget limit has been reached "
            f"(over by {format_price(payload.get('overspent', 0))})",
        )
    return ("RidePay Notification", payload.get("message", ""))


def notification_email_html(recipient_name: str, title: str, message: str, details: Dict) -> str:
    rows = "".join(
        f"""
        <tr>
            <td style="border:1px solid #ddd; padding:8px; font-weight:bold;">{key.replace('_', ' ').title()}</td>
            <td style="border:1px solid #ddd; padding:8px;">{value}</td>
        </tr>
        """
        for key, value in details.items()
        if value is not None
    )

    return f"""
    <html>
    <body style="font-family: Arial, sans-serif; color: #333;">
        <h2 style="text-align:center; color:#444;">RidePay</h2>
        <h3 style="text-align:center;">{title}</h3>
        <hr>

        <p>Hello <strong>{recipient_name}</strong>,</p>
        <p>{message}</p>

        <table style="border-collapse: collapse; width: 100%; margin: 20px 0;">
            {rows}
        </table>

        <p style="font-size:12px; color:#888;">This is an automated message, please do not reply.</p>
    </body>
    </html>
    """
