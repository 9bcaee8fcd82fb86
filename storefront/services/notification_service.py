"""
Envio de e-mails transacionais dos pedidos (confirmação e envio).

Best-effort: falhas são logadas e nunca chegam a quem chamou.
"""

import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr, formatdate, make_msgid
from typing import Any, Dict, Optional

import aiosmtplib
from jinja2 import Environment, PackageLoader, select_autoescape

logger = logging.getLogger(__name__)

ORDER_CONFIRMATION = "orderConfirmation"
ORDER_SHIPPED = "orderShipped"

# kind -> (template, assunto)
TEMPLATES = {
    ORDER_CONFIRMATION: ("order_confirmation.html", "Order Confirmation - {store} [{orderNumber}]"),
    ORDER_SHIPPED: ("order_shipped.html", "Your Order Has Been Shipped - {store} [{orderNumber}]"),
}


@dataclass
class MailMessage:
    """Mensagem pronta para o backend de envio"""
    to: str
    subject: str
    html: str


class ConsoleMailer:
    """Backend de desenvolvimento: só registra no log"""

    name = "console"

    def send(self, message: MailMessage):
        logger.info(f"[console-mail] para={message.to} assunto={message.subject!r} ({len(message.html)} bytes de HTML)")


class SmtpMailer:
    """Backend SMTP (STARTTLS na 587, SSL direto na 465)"""

    name = "smtp"

    def __init__(self, host: str, port: int = 587, username: str = "", password: str = "",
                 from_email: str = "", from_name: str = "", timeout: int = 30):
        self.host = host
        self.port = int(port)
        self.username = username
        self.password = password
        self.from_email = from_email or username
        self.from_name = from_name
        self.timeout = timeout

    def _build(self, message: MailMessage) -> MIMEMultipart:
        mime = MIMEMultipart("alternative")
        mime["From"] = formataddr((self.from_name, self.from_email))
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime["Date"] = formatdate(localtime=True)
        mime["Message-ID"] = make_msgid()
        mime.attach(MIMEText(message.html, "html", "utf-8"))
        return mime

    def send(self, message: MailMessage):
        mime = self._build(message)
        # 465 = TLS implícito; demais portas sobem via STARTTLS
        asyncio.run(aiosmtplib.send(
            mime,
            hostname=self.host,
            port=self.port,
            start_tls=self.port != 465,
            use_tls=self.port == 465,
            username=self.username or None,
            password=self.password or None,
            timeout=self.timeout,
        ))
        logger.info(f"E-mail enviado para {message.to}: {mime['Message-ID']}")


def _money_filter(symbol):
    def money(value):
        try:
            return f"{symbol}{float(value):,.2f}"
        except (TypeError, ValueError):
            return f"{symbol}0.00"
    return money


def _date_filter(value):
    if not value:
        return "To be confirmed"
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    return value.strftime("%d/%m/%Y")


class NotificationService:
    """Notification sink dos pedidos"""

    def __init__(self, mailer, store_name: str = "Storefront", currency_symbol: str = "₦",
                 async_delivery: bool = True, max_workers: int = 2):
        self.mailer = mailer
        self.store_name = store_name
        self.async_delivery = async_delivery
        self._executor: Optional[ThreadPoolExecutor] = None
        if async_delivery:
            self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="mail")

        self.env = Environment(
            loader=PackageLoader("storefront", "templates/email"),
            autoescape=select_autoescape(["html"]),
        )
        self.env.filters["money"] = _money_filter(currency_symbol)
        self.env.filters["shortdate"] = _date_filter

    @classmethod
    def from_config(cls, config):
        backend = config.get("MAIL_BACKEND") or ("smtp" if config.get("SMTP_HOST") else "console")
        if backend == "smtp":
            mailer = SmtpMailer(
                host=config["SMTP_HOST"],
                port=config.get("SMTP_PORT", 587),
                username=config.get("SMTP_USER", ""),
                password=config.get("SMTP_PASS", ""),
                from_email=config.get("MAIL_FROM_EMAIL") or config.get("SMTP_USER", ""),
                from_name=config.get("MAIL_FROM_NAME", "Storefront"),
            )
        elif backend == "console":
            mailer = ConsoleMailer()
        else:
            raise ValueError(f"MAIL_BACKEND desconhecido: {backend}")

        logger.info(f"Notificações via backend '{mailer.name}' (async={config.get('MAIL_ASYNC', True)})")
        return cls(
            mailer,
            store_name=config.get("MAIL_FROM_NAME", "Storefront"),
            currency_symbol=config.get("CURRENCY_SYMBOL", "₦"),
            async_delivery=bool(config.get("MAIL_ASYNC", True)),
        )

    def render(self, kind: str, payload: Dict[str, Any]) -> MailMessage:
        template_name, subject = TEMPLATES[kind]
        template = self.env.get_template(template_name)
        html = template.render(store=self.store_name, **payload)
        return MailMessage(
            to=payload["customerEmail"],
            subject=subject.format(store=self.store_name, orderNumber=payload.get("orderNumber", "")),
            html=html,
        )

    def _deliver(self, kind: str, payload: Dict[str, Any]):
        message = self.render(kind, payload)
        self.mailer.send(message)
        logger.info(f"Notificação {kind} entregue para o pedido {payload.get('orderNumber')}")

    def _log_failure(self, kind, payload, error):
        logger.error(f"Falha ao enviar {kind} do pedido {payload.get('orderNumber')}: {error}")

    def send(self, kind: str, payload: Dict[str, Any]):
        """
        Dispara a notificação sem bloquear o pedido.

        Args:
            kind: 'orderConfirmation' ou 'orderShipped'
            payload: snapshot do pedido usado pelo template
        """
        if kind not in TEMPLATES:
            raise ValueError(f"Tipo de notificação desconhecido: {kind}")

        if self._executor is None:
            try:
                self._deliver(kind, payload)
            except Exception as e:
                self._log_failure(kind, payload, e)
            return

        future = self._executor.submit(self._deliver, kind, payload)

        def _done(f):
            error = f.exception()
            if error is not None:
                self._log_failure(kind, payload, error)

        future.add_done_callback(_done)

    def shutdown(self, wait: bool = True):
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
