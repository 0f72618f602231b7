"""HTML rendering for the sign-in, success and cancel pages.

Pure functions that return HTML strings. No Stripe or database access; the
handlers resolve everything first and pass plain values in.
"""

from html import escape
from typing import Optional

from frontdesk.billing.reconcile import WebhookCheckResult
from frontdesk.billing.success import SessionPlan

# Error codes the OAuth callback puts in /signin?error=
SIGNIN_ERROR_MESSAGES = {
    "no_code": "Authentication failed. Please try again.",
    "exchange_failed": "Unable to complete sign-in. Please try again.",
    "callback_failed": "An error occurred during sign-in. Please try again.",
    "no_user": "No user account found. Please try again.",
    "access_denied": "Access was denied. Please try again.",
    "oauth_unavailable": "Google sign-in is not available right now.",
}
UNKNOWN_SIGNIN_ERROR = "An unknown error occurred."


def signin_error_message(code: Optional[str]) -> Optional[str]:
    """Fixed message for a sign-in error code. Free text is never echoed."""
    if not code:
        return None
    return SIGNIN_ERROR_MESSAGES.get(code, UNKNOWN_SIGNIN_ERROR)


def _layout(title: str, body: str) -> str:
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <title>{escape(title)}</title>
</head>
<body>
  <main class="page">
{body}
  </main>
</body>
</html>
"""


def render_success_page(
    plan: Optional[SessionPlan],
    webhook_status: Optional[WebhookCheckResult],
) -> str:
    """Payment-successful page with plan details and a sync warning if needed.

    Args:
        plan: Resolved plan, or None when no session_id was supplied
        webhook_status: Reconciliation result, or None when not checked

    Returns:
        Complete HTML document
    """
    sections = [
        "    <h1>Payment successful</h1>",
        "    <p>Your subscription is active. You can start using your plan.</p>",
    ]

    if plan is not None and plan.plan_key and plan.plan_name:
        sections.append(
            '    <div class="plan-details">\n'
            "      <p>Plan details</p>\n"
            f"      <p><strong>{escape(plan.plan_name)}</strong> &middot; Status: Active</p>\n"
            "    </div>"
        )

    if webhook_status is not None and webhook_status.needs_webhook:
        sections.append(
            '    <div class="alert alert-destructive" role="alert">\n'
            "      <h2>Webhook failed</h2>\n"
            "      <p>Your payment went through, but we couldn&#x27;t sync your "
            "subscription. Please contact support if your plan doesn&#x27;t "
            "appear shortly.</p>\n"
            "    </div>"
        )

    sections.append('    <a class="button" href="/onboarding">Continue to onboarding</a>')

    return _layout("Payment successful", "\n".join(sections))


def render_cancel_page(plan_key: Optional[str]) -> str:
    """Payment-cancelled page, with a retry form when the plan is known.

    plan_key must already be validated; it is echoed into a hidden field.
    """
    sections = [
        "    <h1>Payment cancelled</h1>",
        "    <p>Your payment was cancelled. You can try again or choose a different plan.</p>",
    ]

    if plan_key:
        sections.append(
            '    <form method="post" action="/stripe/retry">\n'
            f'      <input type="hidden" name="planKey" value="{escape(plan_key)}">\n'
            '      <button type="submit">Retry payment</button>\n'
            "    </form>"
        )

    sections.append('    <a class="button button-outline" href="/">Back to pricing</a>')

    return _layout("Payment cancelled", "\n".join(sections))


def render_signin_page(error: Optional[str] = None, email: str = "") -> str:
    """Email/password sign-in form with a Google sign-in link."""
    error_html = ""
    if error:
        error_html = f'    <p class="form-error" role="alert">{escape(error)}</p>\n'

    body = (
        "    <h1>Sign in</h1>\n"
        f"{error_html}"
        '    <form method="post" action="/signin">\n'
        '      <label>Email <input type="email" name="email" '
        f'value="{escape(email)}" required></label>\n'
        '      <label>Password <input type="password" name="password" required></label>\n'
        '      <button type="submit">Sign in</button>\n'
        "    </form>\n"
        '    <a class="button button-outline" href="/auth/google">Continue with Google</a>'
    )
    return _layout("Sign in", body)
