from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass

from ..models import CertificateConfig
from .certificates_layout import resolve_effective_config


@dataclass(frozen=True)
class CertificateTemplate:
    id: str
    name: str
    description: str
    config: dict


def _preset(**overrides) -> dict:
    preset = {
        "orientation": "landscape",
        "logoUrl": None,
        "qrCodeText": None,
        "subtitle": "",
        "footer": "",
    }
    preset.update(overrides)
    return preset


CERTIFICATE_TEMPLATES: list[CertificateTemplate] = [
    CertificateTemplate(
        id="modern",
        name="Moderno",
        description="Design limpo e contemporâneo com linhas de destaque",
        config=_preset(
            template="modern",
            primaryColor="#2563eb",
            secondaryColor="#64748b",
            backgroundColor="#ffffff",
            borderColor="#e2e8f0",
            titleFontSize=28,
            nameFontSize=20,
            bodyFontSize=14,
            fontFamily="helvetica",
            title="Certificado de Participação",
            bodyText=(
                "Certificamos que {userName} participou com êxito do evento "
                "{eventName}, realizado em {eventDate} das {eventTime}."
            ),
            titlePosition={"x": 50, "y": 20},
            namePosition={"x": 50, "y": 40},
            bodyPosition={"x": 50, "y": 60},
            logoSize=80,
            logoPosition={"x": 10, "y": 15},
            showBorder=False,
            borderWidth=2,
            showWatermark=False,
            watermarkText="CERTIFICADO",
            watermarkOpacity=0.1,
            includeQRCode=False,
            qrCodePosition={"x": 90, "y": 90},
        ),
    ),
    CertificateTemplate(
        id="classic",
        name="Clássico",
        description="Estilo tradicional e elegante com bordas ornamentais",
        config=_preset(
            template="classic",
            primaryColor="#7c2d12",
            secondaryColor="#a3a3a3",
            backgroundColor="#fefbf3",
            borderColor="#d4af37",
            titleFontSize=26,
            nameFontSize=18,
            bodyFontSize=12,
            fontFamily="times",
            title="Certificado de Participação",
            subtitle="Curso de Capacitação Profissional",
            bodyText=(
                "Certificamos que {userName} participou com aproveitamento do evento "
                "{eventName}, com carga horária total, realizado em {eventDate} das "
                "{eventTime}."
            ),
            footer="Válido em todo território nacional",
            titlePosition={"x": 50, "y": 25},
            namePosition={"x": 50, "y": 45},
            bodyPosition={"x": 50, "y": 65},
            logoSize=70,
            logoPosition={"x": 15, "y": 15},
            showBorder=True,
            borderWidth=3,
            showWatermark=True,
            watermarkText="CERTIFICADO",
            watermarkOpacity=0.1,
            includeQRCode=True,
            qrCodeText="Válido digitalmente",
            qrCodePosition={"x": 85, "y": 15},
        ),
    ),
    CertificateTemplate(
        id="elegant",
        name="Elegante",
        description="Sofisticado e refinado com elementos decorativos",
        config=_preset(
            template="elegant",
            primaryColor="#7c3aed",
            secondaryColor="#6b7280",
            backgroundColor="#ffffff",
            borderColor="#c4b5fd",
            titleFontSize=24,
            nameFontSize=18,
            bodyFontSize=12,
            fontFamily="times",
            title="Certificado de Excelência",
            subtitle="Reconhecimento de Participação",
            bodyText=(
                "Por meio deste, certificamos que {userName} participou com distinção "
                "do evento {eventName}, demonstrando dedicação e comprometimento, "
                "realizado em {eventDate} das {eventTime}."
            ),
            footer="Organização Certificada",
            titlePosition={"x": 50, "y": 22},
            namePosition={"x": 50, "y": 42},
            bodyPosition={"x": 50, "y": 62},
            logoSize=75,
            logoPosition={"x": 12, "y": 18},
            showBorder=True,
            borderWidth=2,
            showWatermark=False,
            watermarkText="ELEGANTE",
            watermarkOpacity=0.08,
            includeQRCode=True,
            qrCodeText="Validação digital",
            qrCodePosition={"x": 88, "y": 18},
        ),
    ),
    CertificateTemplate(
        id="minimalist",
        name="Minimalista",
        description="Simplicidade e clareza com foco no conteúdo",
        config=_preset(
            template="minimalist",
            primaryColor="#111827",
            secondaryColor="#6b7280",
            backgroundColor="#ffffff",
            borderColor="#e5e7eb",
            titleFontSize=22,
            nameFontSize=16,
            bodyFontSize=11,
            fontFamily="helvetica",
            title="Certificado",
            bodyText="{userName} participou do evento {eventName} em {eventDate} das {eventTime}.",
            titlePosition={"x": 50, "y": 30},
            namePosition={"x": 50, "y": 50},
            bodyPosition={"x": 50, "y": 70},
            logoSize=60,
            logoPosition={"x": 20, "y": 20},
            showBorder=True,
            borderWidth=1,
            showWatermark=False,
            watermarkText="MINIMAL",
            watermarkOpacity=0.05,
            includeQRCode=False,
            qrCodePosition={"x": 80, "y": 20},
        ),
    ),
    CertificateTemplate(
        id="corporate",
        name="Corporativo",
        description="Profissional para ambiente empresarial",
        config=_preset(
            template="modern",
            primaryColor="#1f2937",
            secondaryColor="#4b5563",
            backgroundColor="#ffffff",
            borderColor="#d1d5db",
            titleFontSize=24,
            nameFontSize=18,
            bodyFontSize=12,
            fontFamily="helvetica",
            title="Certificado de Participação",
            subtitle="Programa de Capacitação Empresarial",
            bodyText=(
                "A empresa certifica que {userName} participou com aproveitamento do "
                "programa {eventName}, com duração total conforme especificado, "
                "realizado em {eventDate} das {eventTime}."
            ),
            footer="Certificado válido para fins profissionais",
            titlePosition={"x": 50, "y": 25},
            namePosition={"x": 50, "y": 45},
            bodyPosition={"x": 50, "y": 65},
            logoSize=80,
            logoPosition={"x": 10, "y": 10},
            showBorder=True,
            borderWidth=2,
            showWatermark=True,
            watermarkText="CORPORATIVO",
            watermarkOpacity=0.08,
            includeQRCode=True,
            qrCodeText="Validação corporativa",
            qrCodePosition={"x": 90, "y": 10},
        ),
    ),
    CertificateTemplate(
        id="academic",
        name="Acadêmico",
        description="Formal para instituições de ensino",
        config=_preset(
            template="classic",
            primaryColor="#1e40af",
            secondaryColor="#374151",
            backgroundColor="#f9fafb",
            borderColor="#3b82f6",
            titleFontSize=26,
            nameFontSize=19,
            bodyFontSize=13,
            fontFamily="times",
            title="Certificado de Conclusão",
            subtitle="Instituição de Ensino Superior",
            bodyText=(
                "Certificamos que {userName} concluiu com aproveitamento o curso "
                "{eventName}, com carga horária total conforme programa pedagógico, "
                "realizado em {eventDate} das {eventTime}."
            ),
            footer="Válido para fins acadêmicos e profissionais",
            titlePosition={"x": 50, "y": 23},
            namePosition={"x": 50, "y": 43},
            bodyPosition={"x": 50, "y": 63},
            logoSize=85,
            logoPosition={"x": 15, "y": 15},
            showBorder=True,
            borderWidth=3,
            showWatermark=True,
            watermarkText="ACADÊMICO",
            watermarkOpacity=0.12,
            includeQRCode=True,
            qrCodeText="Validação acadêmica",
            qrCodePosition={"x": 85, "y": 15},
        ),
    ),
]


def list_templates() -> list[CertificateTemplate]:
    return list(CERTIFICATE_TEMPLATES)


def get_template(template_id: str) -> CertificateTemplate | None:
    for template in CERTIFICATE_TEMPLATES:
        if template.id == template_id:
            return template
    return None


def get_template_config(template_id: str, overrides: dict | None = None) -> CertificateConfig:
    """Resolved config for a preset; unknown ids use the first preset."""
    template = get_template(template_id) or CERTIFICATE_TEMPLATES[0]
    raw = deepcopy(template.config)
    if overrides:
        raw.update(overrides)
    return resolve_effective_config(raw)
