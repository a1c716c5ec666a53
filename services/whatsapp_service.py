import os
import logging
import requests
from typing import Dict, Any

logger = logging.getLogger(__name__)


class WhatsAppService:
    def __init__(self):
        self.api_key = os.getenv("WHATSAPP_API_KEY")
        self.phone_number = os.getenv("WHATSAPP_PHONE_NUMBER")
        self.base_url = "https://graph.facebook.com/v17.0"
        self.business_name = os.getenv("BUSINESS_NAME", "Lava Jato")

    @staticmethod
    def format_phone(phone: str) -> str:
        # Remove máscara e garante o código do Brasil
        digits = "".join(ch for ch in phone if ch.isdigit())
        if not digits.startswith("55"):
            digits = "55" + digits
        return digits

    def send_message(self, phone: str, message: str) -> Dict[str, Any]:
        """
        Enviar mensagem via WhatsApp Business API.
        Sem WHATSAPP_API_KEY/WHATSAPP_PHONE_NUMBER o envio é apenas simulado.
        """
        if not self.api_key or not self.phone_number:
            logger.info("WhatsApp (simulado) para %s: %s", phone, message)
            return {
                "success": True,
                "message_id": "simulated_message_id",
                "status": "sent"
            }

        payload = {
            "messaging_product": "whatsapp",
            "to": self.format_phone(phone),
            "type": "text",
            "text": {
                "body": message
            }
        }

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

        try:
            response = requests.post(
                f"{self.base_url}/{self.phone_number}/messages",
                json=payload,
                headers=headers,
                timeout=10
            )
        except requests.RequestException as e:
            logger.error("Erro ao enviar mensagem WhatsApp: %s", e)
            return {
                "success": False,
                "error": str(e)
            }

        if response.status_code == 200:
            result = response.json()
            return {
                "success": True,
                "message_id": result.get("messages", [{}])[0].get("id"),
                "status": "sent"
            }

        logger.error("Erro ao enviar mensagem WhatsApp: %s - %s", response.status_code, response.text)
        return {
            "success": False,
            "error": f"HTTP {response.status_code}",
            "details": response.text
        }

    def send_appointment_confirmation(self, phone: str, name: str, services: str, date: str, time: str) -> Dict[str, Any]:
        """Enviar confirmação de agendamento"""
        message = (
            f"✅ Agendamento confirmado\n\nOlá {name}!\n\n"
            f"📅 Data: {date}\n⏰ Horário: {time}\n🚗 Serviços: {services}\n\n"
            f"📍 {self.business_name}\n\nAguardamos você!"
        )

        return self.send_message(phone, message)

whatsapp_service = WhatsAppService()
