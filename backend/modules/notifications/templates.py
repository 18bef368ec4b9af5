"""
Email templates for user notifications.

Copy is in Indonesian, matching the product. Each renderer returns a
RenderedMessage with a plain-text body and a minimal HTML body.
"""

from datetime import datetime
from html import escape
from typing import Any, Callable

from modules.users.models import User

from .models import NotificationKind, RenderedMessage


CODE_VALIDITY_TEXT = "Kode ini berlaku selama 10 menit."


def format_date(value: Any) -> str:
    """Format a date the way Indonesian users read it (dd/mm/yyyy)."""
    if isinstance(value, datetime):
        return value.strftime("%d/%m/%Y")
    return str(value)


def _html(title: str, greeting_name: str, paragraphs: list[str], color: str = "#4a5568") -> str:
    body = "".join(f"<p>{escape(p)}</p>" for p in paragraphs)
    return (
        '<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; '
        'padding: 20px; border: 1px solid #e0e0e0; border-radius: 5px;">'
        f'<h2 style="color: {color};">{escape(title)}</h2>'
        f"<p>Halo <strong>{escape(greeting_name)}</strong>,</p>"
        f"{body}"
        "</div>"
    )


def _message(
    subject: str,
    name: str,
    paragraphs: list[str],
    signature: str,
    color: str = "#4a5568",
) -> RenderedMessage:
    text = "\n\n".join([f"Halo {name},", *paragraphs, signature])
    return RenderedMessage(
        subject=subject,
        text=text,
        html=_html(subject, name, paragraphs + [signature], color),
    )


def _verification_code(user: User, data: dict[str, Any], app_name: str) -> RenderedMessage:
    code = data["code"]
    action = data.get("action")
    name = data.get("display_name") or user.display_name
    signature = f"Terima kasih, Tim {app_name}"

    if action == "password-reset":
        return _message(
            "Reset Kata Sandi - Kode Verifikasi",
            name,
            [
                f"Anda telah meminta untuk mereset kata sandi akun {app_name} Anda.",
                f"Kode verifikasi Anda adalah: {code}",
                CODE_VALIDITY_TEXT,
                "Jika Anda tidak meminta reset kata sandi, silakan abaikan email ini.",
            ],
            signature,
        )
    if action == "email-verify":
        return _message(
            f"Verifikasi Email - {app_name}",
            name,
            [
                f"Terima kasih telah mendaftar di {app_name}.",
                f"Kode verifikasi Anda adalah: {code}",
                CODE_VALIDITY_TEXT,
            ],
            signature,
        )
    return _message(
        f"Kode Verifikasi - {app_name}",
        name,
        [f"Berikut adalah kode verifikasi Anda: {code}", CODE_VALIDITY_TEXT],
        signature,
    )


def _subscription_expired(user: User, data: dict[str, Any], app_name: str) -> RenderedMessage:
    return _message(
        "Langganan Pro Anda telah berakhir",
        user.username or "Pelanggan",
        [
            f"Langganan Pro Anda di {app_name} telah berakhir. "
            "Akun Anda sekarang telah dikembalikan ke status Gratis.",
            "Untuk memperbarui langganan Anda, silakan hubungi admin atau kunjungi situs kami.",
        ],
        f"Terima kasih, Tim {app_name}",
        color="#d32f2f",
    )


def _subscription_expiring(user: User, data: dict[str, Any], app_name: str) -> RenderedMessage:
    days_left = data["days_left"]
    expires = data.get("expires_at", user.subscription_expires)
    return _message(
        "Langganan Pro Anda akan segera berakhir",
        user.username or "Pelanggan",
        [
            f"Langganan Pro Anda di {app_name} akan berakhir dalam {days_left} hari.",
            f"Username: {user.username}",
            f"Tanggal berakhir: {format_date(expires)}",
            "Untuk memperbarui langganan Anda, silakan hubungi admin atau kunjungi situs kami.",
        ],
        f"Terima kasih, Tim {app_name}",
        color="#d32f2f",
    )


def _subscription_extended(user: User, data: dict[str, Any], app_name: str) -> RenderedMessage:
    return _message(
        "Langganan Pro Anda Telah Diperpanjang",
        user.username or "Pelanggan",
        [
            f"Langganan Pro Anda di {app_name} telah diperpanjang.",
            f"Username: {user.username}",
            f"Durasi ditambahkan: {data['added_days']} hari",
            f"Tanggal berakhir baru: {format_date(data['new_expiry'])}",
            "Terima kasih telah menggunakan layanan kami.",
        ],
        f"Salam, Tim {app_name}",
        color="#1976d2",
    )


def _subscription_unlimited(user: User, data: dict[str, Any], app_name: str) -> RenderedMessage:
    return _message(
        "Langganan Pro Anda Sekarang Tidak Terbatas!",
        user.username or "Pelanggan",
        [
            f"Selamat! Langganan Pro Anda di {app_name} sekarang tidak terbatas!",
            f"Username: {user.username}",
            "Durasi: Tidak terbatas (permanen)",
            "Terima kasih telah menggunakan layanan kami.",
        ],
        f"Salam, Tim {app_name}",
        color="#1976d2",
    )


def _role_upgraded(user: User, data: dict[str, Any], app_name: str) -> RenderedMessage:
    return _message(
        "Selamat! Akun Anda Telah Diupgrade ke Pro",
        user.username or "Pelanggan",
        [
            f"Selamat! Akun Anda di {app_name} telah diupgrade ke status Pro.",
            f"Username: {user.username}",
            "Status: Pro",
            "Semua fitur Pro sekarang tersedia untuk Anda gunakan.",
        ],
        f"Salam, Tim {app_name}",
        color="#2e7d32",
    )


_RENDERERS: dict[NotificationKind, Callable[[User, dict[str, Any], str], RenderedMessage]] = {
    NotificationKind.VERIFICATION_CODE: _verification_code,
    NotificationKind.SUBSCRIPTION_EXPIRED: _subscription_expired,
    NotificationKind.SUBSCRIPTION_EXPIRING: _subscription_expiring,
    NotificationKind.SUBSCRIPTION_EXTENDED: _subscription_extended,
    NotificationKind.SUBSCRIPTION_UNLIMITED: _subscription_unlimited,
    NotificationKind.ROLE_UPGRADED: _role_upgraded,
}


def render(
    kind: NotificationKind,
    user: User,
    data: dict[str, Any],
    app_name: str = "Mbotix Prompt Generate",
) -> RenderedMessage:
    """
    Render the email for a notification kind.

    Raises:
        KeyError: If a variable the template needs is missing from data
    """
    return _RENDERERS[kind](user, data, app_name)
