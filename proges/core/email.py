import requests

from proges.core.config import settings


def send_password_reset_email(to_email: str, reset_link: str):
    if not settings.RESEND_API_KEY:
        raise RuntimeError("RESEND_API_KEY not configured")

    url = "https://api.resend.com/emails"

    payload = {
        "from": settings.RESEND_FROM_EMAIL,
        "to": [to_email],
        "subject": "Réinitialisation de votre mot de passe Pro-GES",
        "text": f"""
Bonjour,

Vous avez demandé la réinitialisation de votre mot de passe.

Cliquez sur le lien ci-dessous pour choisir un nouveau mot de passe :
{reset_link}

Ce lien expire dans {settings.PASSWORD_RESET_EXPIRE_MINUTES} minutes.

Si vous n'êtes pas à l'origine de cette demande, ignorez cet e-mail.

L'équipe Pro-GES
""",
    }

    headers = {
        "Authorization": f"Bearer {settings.RESEND_API_KEY}",
        "Content-Type": "application/json",
    }

    response = requests.post(url, json=payload, headers=headers, timeout=10)

    if response.status_code >= 400:
        raise RuntimeError(f"Email sending failed: {response.text}")
