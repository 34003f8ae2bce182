# apps/backend/chefai/email_templates.py
from html import escape


def compose_verification_code_email(*, code: str, minutes: int = 10) -> tuple[str, str]:
    subject = "Seu código de acesso ChefAI"

    html = f"""<!doctype html><html><head><meta charset="utf-8">
<meta name="viewport" content="width=device-width, initial-scale=1.0"></head>
<body style="font-family:-apple-system,BlinkMacSystemFont,'Segoe UI',Roboto,sans-serif;background-color:#f5f5f5;margin:0;padding:20px;">
  <div style="max-width:400px;margin:0 auto;background-color:white;border-radius:16px;padding:32px;">
    <div style="text-align:center;margin-bottom:24px;">
      <h1 style="font-size:24px;color:#1a1a1a;margin:0;">ChefAI</h1>
      <p style="color:#666;margin-top:8px;">Seu assistente culinário inteligente</p>
    </div>
    <p style="color:#333;font-size:16px;line-height:1.5;">Olá! Use o código abaixo para acessar sua conta:</p>
    <div style="background:linear-gradient(135deg,#8B5CF6 0%,#D946EF 100%);border-radius:12px;padding:24px;text-align:center;margin:24px 0;">
      <p style="font-size:36px;font-weight:bold;color:white;letter-spacing:8px;margin:0;">{escape(code)}</p>
    </div>
    <p style="color:#666;font-size:14px;text-align:center;">Este código expira em <strong>{minutes} minutos</strong>.</p>
    <hr style="border:none;border-top:1px solid #eee;margin:24px 0;">
    <p style="color:#999;font-size:12px;text-align:center;">Se você não solicitou este código, ignore este email.</p>
  </div>
</body></html>"""
    return subject, html
