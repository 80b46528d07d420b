"""Gabarits des emails transactionnels (HTML échappé)."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from html import escape

from myles.domain.entities import (
    Business,
    BusinessClaim,
    FitnessSession,
    PersonalTrainer,
    TrainerBooking,
    User,
)
from myles.infra.notifications.base import EmailMessage


def _e(value: object) -> str:
    return escape("" if value is None else str(value))


def _money(amount: Decimal) -> str:
    return f"£{Decimal(amount):.2f}"


def _date(value: datetime) -> str:
    return value.strftime("%d/%m/%Y")


def business_registered(admin_email: str, business: Business, owner: User) -> EmailMessage:
    return EmailMessage(
        to=admin_email,
        subject="New Business Registration - Pending Approval",
        html=(
            "<h2>New Business Registration</h2>"
            f"<p><strong>Business Name:</strong> {_e(business.name)}</p>"
            f"<p><strong>Address:</strong> {_e(business.address)}</p>"
            f"<p><strong>User:</strong> {_e(owner.display_name)} ({_e(owner.email)})</p>"
            "<p>Please review and approve this business registration.</p>"
        ),
    )


def business_decision(to: str, business: Business, approved: bool) -> EmailMessage:
    if approved:
        return EmailMessage(
            to=to,
            subject="Business Approved - MYLES",
            html=(
                "<h2>Congratulations!</h2>"
                f"<p>Your business \"{_e(business.name)}\" has been approved and is now live "
                "on MYLES.</p>"
                "<p>You can now start adding fitness sessions for users to book.</p>"
            ),
        )
    return EmailMessage(
        to=to,
        subject="Business Application Update - MYLES",
        html=(
            "<h2>Business Application Update</h2>"
            "<p>Thank you for your interest in MYLES. Unfortunately, your business application "
            f"for \"{_e(business.name)}\" needs additional review.</p>"
            "<p>Please contact our support team for more information.</p>"
        ),
    )


def claim_submitted(
    admin_email: str, business: Business, claimant: User, claim: BusinessClaim
) -> EmailMessage:
    return EmailMessage(
        to=admin_email,
        subject="Business Claim Request - Pending Review",
        html=(
            "<h2>Business Claim Request</h2>"
            f"<p><strong>Business:</strong> {_e(business.name)}</p>"
            f"<p><strong>Address:</strong> {_e(business.address)}</p>"
            f"<p><strong>Claimant:</strong> {_e(claimant.display_name)} ({_e(claimant.email)})</p>"
            f"<p><strong>Message:</strong> {_e(claim.claim_message)}</p>"
            "<p>Please review and approve this business claim request.</p>"
        ),
    )


def claim_decision(to: str, business: Business, approved: bool) -> EmailMessage:
    if approved:
        subject = "Business Claim Approved - MYLES"
        body = (
            f"<p>Your claim for \"{_e(business.name)}\" has been approved. "
            "You can now manage this business from your dashboard.</p>"
        )
    else:
        subject = "Business Claim Update - MYLES"
        body = (
            f"<p>Your claim for \"{_e(business.name)}\" could not be approved.</p>"
            "<p>Please contact our support team for more information.</p>"
        )
    return EmailMessage(to=to, subject=subject, html=f"<h2>Business Claim</h2>{body}")


def session_submitted(
    admin_email: str, session: FitnessSession, business: Business
) -> EmailMessage:
    return EmailMessage(
        to=admin_email,
        subject="New Session Submission - Pending Approval",
        html=(
            "<h2>New Session Submission</h2>"
            f"<p><strong>Session:</strong> {_e(session.title)}</p>"
            f"<p><strong>Business:</strong> {_e(business.name)}</p>"
            f"<p><strong>Price:</strong> {_money(session.price)}</p>"
            "<p>Please review and approve this session.</p>"
        ),
    )


def booking_confirmed(
    to: str, session: FitnessSession, session_date: datetime, total: Decimal
) -> EmailMessage:
    return EmailMessage(
        to=to,
        subject="Booking Confirmation - MYLES",
        html=(
            "<h2>Booking Confirmed!</h2>"
            "<p>Your booking has been confirmed for:</p>"
            f"<p><strong>Session:</strong> {_e(session.title)}</p>"
            f"<p><strong>Date:</strong> {_date(session_date)}</p>"
            f"<p><strong>Total:</strong> {_money(total)}</p>"
            "<p>Thank you for choosing MYLES!</p>"
        ),
    )


def trainer_applied(admin_email: str, trainer: PersonalTrainer) -> EmailMessage:
    rate = _money(trainer.hourly_rate) if trainer.hourly_rate is not None else "-"
    return EmailMessage(
        to=admin_email,
        subject="New Personal Trainer Application - Pending Approval",
        html=(
            "<h2>New Personal Trainer Application</h2>"
            f"<p><strong>Name:</strong> {_e(trainer.full_name)}</p>"
            f"<p><strong>Location:</strong> {_e(trainer.location)}</p>"
            f"<p><strong>Experience:</strong> {_e(trainer.experience)} years</p>"
            f"<p><strong>Hourly Rate:</strong> {rate}</p>"
            f"<p><strong>Bio:</strong> {_e(trainer.bio)}</p>"
            "<p>Please review and approve this trainer application in the admin dashboard.</p>"
        ),
    )


def trainer_decision(to: str, approved: bool) -> EmailMessage:
    if approved:
        return EmailMessage(
            to=to,
            subject="Trainer Application Approved - MYLES",
            html=(
                "<h2>Congratulations!</h2>"
                "<p>Your personal trainer application has been approved and you're now live "
                "on MYLES.</p>"
                "<p>You can start receiving booking requests from clients.</p>"
            ),
        )
    return EmailMessage(
        to=to,
        subject="Trainer Application Update - MYLES",
        html=(
            "<h2>Trainer Application Update</h2>"
            "<p>Thank you for your interest in becoming a trainer on MYLES. Your application "
            "needs additional review.</p>"
            "<p>Please contact our support team for more information.</p>"
        ),
    )


def trainer_booking_client(booking: TrainerBooking, trainer: PersonalTrainer) -> EmailMessage:
    return EmailMessage(
        to=booking.client_email,
        subject="Personal Training Session Booked - MYLES",
        html=(
            "<h2>Booking Confirmation</h2>"
            "<p>Your personal training session has been booked!</p>"
            f"<p><strong>Trainer:</strong> {_e(trainer.full_name)}</p>"
            f"<p><strong>Date:</strong> {_date(booking.session_date)}</p>"
            f"<p><strong>Duration:</strong> {booking.duration} minutes</p>"
            f"<p><strong>Total:</strong> {_money(booking.total_amount)}</p>"
        ),
    )


def trainer_booking_trainer(to: str, booking: TrainerBooking) -> EmailMessage:
    return EmailMessage(
        to=to,
        subject="New Booking - MYLES",
        html=(
            "<h2>New Booking Received</h2>"
            "<p>You have a new training session booking!</p>"
            f"<p><strong>Client:</strong> {_e(booking.client_name)}</p>"
            f"<p><strong>Email:</strong> {_e(booking.client_email)}</p>"
            f"<p><strong>Date:</strong> {_date(booking.session_date)}</p>"
            f"<p><strong>Duration:</strong> {booking.duration} minutes</p>"
        ),
    )
