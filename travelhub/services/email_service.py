"""
Email Service
Handles sending emails for various notifications
"""

from flask import current_app
from flask_mail import Message
from markupsafe import escape
from extensions import mail


def _layout(heading, body_html, button_label=None, button_url=None):
    button = ''
    if button_label and button_url:
        button = f"""
                <div style="margin: 30px 0;">
                    <a href="{button_url}"
                       style="background-color: #0E7C86; color: white; padding: 12px 30px;
                              text-decoration: none; border-radius: 5px; display: inline-block;">
                        {button_label}
                    </a>
                </div>"""
    return f"""
        <html>
        <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">
            <div style="max-width: 600px; margin: 0 auto; padding: 20px;">
                <h2 style="color: #0E7C86;">{heading}</h2>
                {body_html}{button}
                <hr style="border: none; border-top: 1px solid #eee; margin: 20px 0;">
                <p style="color: #999; font-size: 12px;">
                    This is an automated message. Please do not reply to this email.
                </p>
            </div>
        </body>
        </html>
        """


class EmailService:
    """Service for sending emails"""

    @staticmethod
    def frontend_url(path=''):
        return f"{current_app.config.get('FRONTEND_URL', 'http://localhost:3000')}{path}"

    @staticmethod
    def send_email(to, subject, html_body, text_body=None):
        """Send an email"""
        try:
            msg = Message(
                subject=subject,
                recipients=[to] if isinstance(to, str) else to,
                html=html_body,
                body=text_body or html_body
            )
            mail.send(msg)
            return True
        except Exception as e:
            current_app.logger.error(f'Failed to send email: {str(e)}')
            return False

    @staticmethod
    def send_registration_email(user):
        """Send welcome email after registration"""
        subject = "Welcome to TravelHub!"
        html_body = _layout(
            f"Welcome, {escape(user.first_name)}!",
            f"""<p>Your account has been created.</p>
                <ul>
                    <li><strong>Username:</strong> {escape(user.username)}</li>
                    <li><strong>Email:</strong> {escape(user.email)}</li>
                </ul>
                <p>Start exploring stays, vehicles and tours.</p>""",
            'Explore TravelHub',
            EmailService.frontend_url(),
        )
        return EmailService.send_email(user.email, subject, html_body)

    @staticmethod
    def send_notification_email(user, title, message, action_url=None):
        """Generic email mirroring an in-app notification"""
        html_body = _layout(
            escape(title),
            f"<p>Hi {escape(user.first_name)},</p><p>{escape(message)}</p>",
            'Open' if action_url else None,
            EmailService.frontend_url(action_url) if action_url else None,
        )
        return EmailService.send_email(user.email, title, html_body)

    @staticmethod
    def send_booking_confirmation(booking):
        """Send booking confirmation email to the customer"""
        customer = booking.customer
        subject = f"Booking Confirmed - {booking.service_name}"
        html_body = _layout(
            'Booking Confirmed!',
            f"""<p>Hi {escape(customer.first_name)},</p>
                <p>Your booking has been confirmed.</p>
                <div style="background-color: #f8f8f8; padding: 20px; border-radius: 5px; margin: 20px 0;">
                    <h3 style="margin-top: 0; color: #333;">{escape(booking.service_name)}</h3>
                    <p><strong>Starts:</strong> {booking.starts_on}</p>
                    <p><strong>Total Price:</strong> {booking.currency} {booking.total_price}</p>
                    <p><strong>Booking Number:</strong> {booking.booking_number}</p>
                </div>""",
            'View Booking Details',
            EmailService.frontend_url(f'/dashboard/bookings/{booking.id}?type={booking.kind}'),
        )
        return EmailService.send_email(customer.email, subject, html_body)

    @staticmethod
    def send_booking_notification_to_provider(booking):
        """Send new booking notification to the provider"""
        provider = booking.provider
        customer = booking.customer
        subject = f"New Booking - {booking.service_name}"
        html_body = _layout(
            'New Booking Received',
            f"""<p>Hi {escape(provider.first_name)},</p>
                <p>{escape(customer.full_name)} booked <strong>{escape(booking.service_name)}</strong>
                starting {booking.starts_on}.</p>
                <p><strong>Booking Number:</strong> {booking.booking_number}</p>""",
            'Manage Booking',
            EmailService.frontend_url(f'/dashboard/provider/bookings/{booking.id}?type={booking.kind}'),
        )
        return EmailService.send_email(provider.email, subject, html_body)

    @staticmethod
    def send_cancellation_email(booking, refund_percentage):
        customer = booking.customer
        subject = f"Booking Cancelled - {booking.booking_number}"
        html_body = _layout(
            'Booking Cancelled',
            f"""<p>Hi {escape(customer.first_name)},</p>
                <p>Your booking for <strong>{escape(booking.service_name)}</strong> has been cancelled.</p>
                <p><strong>Refund:</strong> {refund_percentage}% ({booking.currency} {booking.refund_amount})</p>""",
        )
        return EmailService.send_email(customer.email, subject, html_body)
