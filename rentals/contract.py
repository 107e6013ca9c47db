"""
Room rental contract for a shared flat.

Two templates render the same data: ``legal`` is the long-form literal Spanish
contract followed by the house rules page; ``structured`` is a shorter layout of
info cards and numbered clauses. The default template comes from settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import List, Optional, Sequence

from rentals.formatting import format_currency, long_date, whole_euros
from rentals.layout import (
    CHARCOAL,
    CONTENT_WIDTH,
    GOLD,
    MARGIN,
    NAVY,
    PAGE_WIDTH,
    WHITE,
    PageLayout,
    bold,
    regular,
)
from rentals.models import Property, Room, Tenant
from rentals.spanish_numbers import amount_in_words

PLACEHOLDER = "___________"

DEFAULT_HOUSE_RULES: Sequence[str] = (
    "Repartir y asignar las distintas tareas del hogar. De esta manera, evitarás en la medida de lo posible las discusiones. Dejarlo a la buena voluntad de cada uno no funciona.",
    "Dejar lo más limpio y presentable posible las habitaciones comunes, como el baño o la cocina.",
    "Establecer unos horarios de silencio ya que se puede molestar a algunos compañeros que tengan que trabajar. Horario mínimo a respetar de 23h a 8h, no usar la lavadora ni el lavavajillas ni ningún otro electrodoméstico que haga ruido a partir de las 23h.",
    "Se recomienda no mostrar actitudes demasiado impositivas o irritantes porque puedes acabar perdiendo compañeros o no encontrando piso.",
    "En el caso de que alguien fume, NUNCA se hará en el interior de la casa, se hará en el patio o terraza.",
    "Se recomienda la aportación de un fondo común para la compra de productos de uso común como lavavajillas, papel higiénico, detergente para la lavadora etc.",
    "No manipular ni el calentador ni la estufa de pellet, avisar en caso de que no funcione correctamente.",
    "Frigorífico: organizar el espacio en función de los compañeros que haya. Limpiar el interior al menos una vez al mes.",
    "No acumular basura dentro de la casa, imprescindible tirarla a diario.",
)


class ContractTemplate(str, Enum):
    LEGAL = "legal"
    STRUCTURED = "structured"

    @classmethod
    def parse(cls, value: Optional[str], default: "ContractTemplate" = None) -> "ContractTemplate":
        fallback = default or cls.LEGAL
        if not value:
            return fallback
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return fallback


@dataclass(frozen=True)
class ContractTerms:
    """Values shared by both templates, resolved once from the input records."""

    landlord_name: str
    landlord_id: str
    city: str
    signed_on: str
    tenant_name: str
    tenant_id: str
    tenant_address: str
    property_address: str
    room_name: str
    start: str
    end: str
    rent: str
    deposit: str
    deposit_words: str
    notes: Optional[str]

    @classmethod
    def resolve(
        cls,
        tenant: Tenant,
        room: Room,
        prop: Property,
        *,
        landlord_name: str,
        landlord_id: str,
        city: str,
        today: date,
    ) -> "ContractTerms":
        deposit = whole_euros(tenant.deposit_amount)
        notes = (tenant.contract_notes or "").strip() or None
        return cls(
            landlord_name=landlord_name or PLACEHOLDER,
            landlord_id=landlord_id or PLACEHOLDER,
            city=city,
            signed_on=long_date(today),
            tenant_name=tenant.full_name,
            tenant_id=tenant.dni or PLACEHOLDER,
            tenant_address=tenant.current_address or prop.address,
            property_address=prop.address,
            room_name=room.name,
            start=long_date(tenant.contract_start_date),
            end=long_date(tenant.contract_end_date),
            rent=format_currency(room.monthly_rent, whole=True),
            deposit=format_currency(deposit, whole=True),
            deposit_words=amount_in_words(deposit),
            notes=notes,
        )


# --------------------------------------------------------------------------- legal


def _render_legal(layout: PageLayout, terms: ContractTerms, house_rules: Sequence[str]) -> None:
    layout.flow_text(
        "CONTRATO DE ARRENDAMIENTO DE HABITACIÓN EN PISO COMPARTIDO.",
        size=16,
        is_bold=True,
        color=NAVY,
        spacing_after=12,
        kind="title",
    )
    layout.flow_spans([regular(f"En {terms.city} a "), bold(terms.signed_on)], spacing_after=4)
    layout.flow_text("Estamos reunidos:", spacing_after=8)

    layout.flow_text("COMO PARTE ARRENDADORA:", is_bold=True, spacing_after=4)
    layout.flow_spans(
        [
            regular("D/Dña. "),
            bold(terms.landlord_name),
            regular(", mayor de edad y titular del DNI "),
            bold(terms.landlord_id),
            regular(". Propietario/a de la vivienda compartida situada en "),
            bold(terms.property_address),
            regular("."),
        ],
        spacing_after=8,
    )

    layout.flow_text("COMO PARTE ARRENDATARIA:", is_bold=True, spacing_after=4)
    layout.flow_spans(
        [
            regular("D/Dña. "),
            bold(terms.tenant_name),
            regular(" mayor de edad con DNI/PASAPORTE "),
            bold(terms.tenant_id),
            regular(" y con domicilio en "),
            bold(terms.tenant_address),
        ],
        spacing_after=12,
    )

    layout.flow_text("AMBAS PARTES CONVIENEN EL ARRIENDO DE LA HABITACIÓN", size=12, is_bold=True, spacing_after=4)
    layout.flow_spans(
        [
            regular("Que se inicia el día "),
            bold(terms.start),
            regular(" finalizando el día "),
            bold(terms.end),
            regular(". El precio del arriendo es de "),
            bold(terms.rent),
            regular(
                " mensuales, estando incluidos los gastos a excepción de calefacción y electricidad que deberán"
                " ser abonados de la siguiente forma, a dividir entre todos los ocupantes de la vivienda."
            ),
        ],
        spacing_after=6,
    )

    layout.ensure_space(60)
    layout.flow_spans(
        [
            regular("EL DEPÓSITO que, como garantía deberá abonar el ARRENDATARIO es de "),
            bold(terms.deposit),
            regular(" ("),
            bold(terms.deposit_words),
            regular(
                "), importe que le será devuelto al finalizar el contrato, bien en metálico bien por transferencia bancaria."
            ),
        ],
        spacing_after=6,
    )

    layout.ensure_space(40)
    layout.flow_text(
        "Este contrato no tiene validez como justificante de pago del arriendo, EL ARRENDADOR le deberá entregar"
        " al ARRENDATARIO un recibo como justificante de pago.",
        spacing_after=6,
    )

    layout.ensure_space(50)
    layout.flow_text(
        "El objeto del ARRIENDO ES EXCLUSIVAMENTE la habitación que se indica, sin derecho a utilizar otros"
        " dormitorios de la casa. En cuanto al resto del mismo, EL ARRENDADOR acepta compartir el uso de la"
        " cocina, salón, y baño común para lo que se obliga a las normas de respeto y buena convivencia.",
        spacing_after=12,
    )

    layout.ensure_space(80)
    layout.flow_text("DERECHO DE ACCESO A LA VIVIENDA DEL ARRENDADOR.", is_bold=True, spacing_after=4)
    layout.flow_text(
        "Las partes acuerdan expresamente la renuncia del arrendatario a impedir que el arrendador pueda acceder a"
        " las zonas comunes de la vivienda. La violación de este derecho del arrendador por parte de cualquier"
        " persona que se encuentre en la vivienda será considerada causa de disolución del contrato y motivo de"
        " desahucio del arrendatario, siendo este responsable de los daños y perjuicios que el impedimento del"
        " acceso pueda ocasionar al arrendador, entre otros la pérdida de beneficios por no poder arrendar otras"
        " habitaciones.",
        spacing_after=8,
    )

    layout.ensure_space(80)
    layout.flow_text("CLÁUSULA DE PREAVISO Y PERMANENCIA MENSUAL", is_bold=True, spacing_after=4)
    layout.flow_text(
        "En caso de que el ARRENDATARIO desee dar por finalizado el contrato antes de su fecha de vencimiento,"
        " deberá comunicarlo al ARRENDADOR con un mínimo de 15 días naturales de antelación.",
        spacing_after=4,
    )
    layout.flow_text(
        "No obstante, aunque se haya dado el preaviso dentro de ese plazo, el ARRENDATARIO estará obligado a abonar"
        " la mensualidad completa del mes en el que abandone la habitación, no correspondiendo, en ningún caso, el"
        " prorrateo de dicho importe.",
        spacing_after=8,
    )

    layout.ensure_space(80)
    layout.flow_text(
        "EL ARRENDADOR podrá rescindir el contrato UNILATERALMENTE DE FORMA INMEDIATA si existen faltas en las"
        " normas del piso, o de buena convivencia entre compañeros o con el vecindario de la casa, o bien si"
        " estuviera en situación de falta de pago de la renta o suministros y/o calefacción, como también si"
        " existiera incumplimiento de cualquiera de los términos del contrato.",
        spacing_after=4,
    )
    layout.flow_text(
        "EL ARRENDADOR se reserva el derecho de rescindir el contrato por cualquier causa diferente a las anteriores"
        " siempre y cuando lo comunique al arrendatario con un mes de antelación.",
        spacing_after=6,
    )

    layout.ensure_space(40)
    for clause in (
        "Queda prohibida la introducción de terceras personas sin previo aviso al arrendador, la contratación de"
        " ningún tipo de servicios, así como la cesión PARCIAL o TOTAL de este contrato, sin previo permiso escrito"
        " de la propiedad.",
        "El contrato no se podrá ceder ni subarrendar de forma parcial por el arrendatario sin previo consentimiento"
        " por escrito del arrendador.",
        "No se permite fumar en el interior de la casa, ya que dispone de zonas, como el patio, en las que se puede"
        " fumar sin molestar al resto de inquilinos.",
    ):
        layout.flow_text(clause, spacing_after=4)

    layout.ensure_space(40)
    layout.flow_text(
        "EL ARRENDATARIO está obligado a cumplir las normas de la casa, respetando el descanso de todos los que"
        " habitan la casa, especialmente desde las 23:00 hasta las 8:00.",
        spacing_after=4,
    )

    layout.ensure_space(60)
    layout.flow_text(
        "EL ARRENDATARIO declara que el piso está en buen estado, obligándose a conservar todo con la mayor"
        " diligencia y a abonar los desperfectos que no sean debidos a un uso normal y correcto. Al finalizar el"
        " contrato, se comprobará que haya habido una correcta conservación de la casa y mobiliario. Siendo objeto"
        " de arriendo exclusivamente la habitación expresada, la propiedad conserva su derecho a entrar y salir de"
        " la casa por lo que el arrendatario se obliga a no cambiar la cerradura de la puerta. Por pérdida de"
        " llaves se abonará su importe.",
        spacing_after=4,
    )

    layout.ensure_space(40)
    for clause in (
        "Queda terminantemente PROHIBIDA cualquier obra o alteración en el piso, sin previo permiso por escrito de"
        " la propiedad, así como la entrada de animales en el piso.",
        "EL ARRENDADOR no se hace responsable de pérdidas o hurtos en las habitaciones. A tal efecto todas las"
        " habitaciones tienen cerradura privada.",
        "EL ARRENDADOR tampoco se hace responsable de los posibles daños que pudieran surgir en los dispositivos"
        " eléctricos ajenos enchufados en la red eléctrica del piso.",
    ):
        layout.flow_text(clause, spacing_after=4)
    layout.flow_text(
        "Y en prueba de conformidad con todo cuanto antecede, firman ambas partes en lugar y fecha indicados.",
        spacing_after=20,
    )

    layout.signatures("EL ARRENDADOR", "EL ARRENDATARIO")

    # House rules always start on their own page.
    layout.new_page()
    layout.flow_text(
        "NORMAS DE RESPETO Y BUENA CONVIVENCIA", size=14, is_bold=True, color=NAVY, spacing_after=12, kind="title"
    )
    for rule in house_rules:
        layout.ensure_space(40)
        layout.bullet(rule, indent=5, spacing_after=6)

    if terms.notes:
        layout.y += 10
        layout.ensure_space(60)
        layout.flow_text("CONDICIONES PARTICULARES", size=12, is_bold=True, color=NAVY, spacing_after=6)
        layout.flow_text(terms.notes, italic=True, spacing_after=10)


# --------------------------------------------------------------------------- structured


def _structured_clauses(terms: ContractTerms, house_rules: Sequence[str]) -> List[tuple]:
    clauses = [
        (
            "OBJETO",
            f"El ARRENDADOR cede al ARRENDATARIO el uso exclusivo de la habitación «{terms.room_name}» de la vivienda"
            f" situada en {terms.property_address}, con derecho al uso compartido de cocina, salón y baño comunes.",
        ),
        (
            "DURACIÓN",
            f"El contrato se inicia el {terms.start or PLACEHOLDER} y finaliza el {terms.end or PLACEHOLDER}.",
        ),
        (
            "RENTA",
            f"La renta mensual es de {terms.rent}, pagadera por adelantado dentro de los cinco primeros días de cada"
            " mes. El ARRENDADOR entregará recibo de cada pago.",
        ),
        (
            "FIANZA",
            f"El ARRENDATARIO entrega {terms.deposit} ({terms.deposit_words}) como fianza, que será devuelta al"
            " finalizar el contrato una vez comprobado el buen estado de la habitación.",
        ),
        (
            "GASTOS",
            "Los gastos están incluidos en la renta, a excepción de calefacción y electricidad, que se dividirán"
            " entre todos los ocupantes de la vivienda.",
        ),
        (
            "PREAVISO",
            "El ARRENDATARIO deberá comunicar su salida con un mínimo de 15 días naturales de antelación y abonará"
            " la mensualidad completa del mes en que abandone la habitación.",
        ),
        (
            "CONVIVENCIA",
            "Se respetará el descanso de 23:00 a 8:00. No se permite fumar en el interior, ni la entrada de"
            " animales, ni el subarriendo o cesión del contrato sin consentimiento escrito.",
        ),
    ]
    if house_rules:
        clauses.append(("NORMAS DE LA CASA", "El ARRENDATARIO acepta las normas de convivencia que se detallan a continuación."))
    return clauses


def _render_structured(layout: PageLayout, terms: ContractTerms, house_rules: Sequence[str]) -> None:
    header_h = 70
    layout.fill_rect(0, 0, PAGE_WIDTH, header_h, NAVY)
    layout.draw_text(
        "CONTRATO DE ARRENDAMIENTO DE HABITACIÓN", MARGIN, 20, max_width=CONTENT_WIDTH, size=16, is_bold=True, color=WHITE
    )
    layout.draw_text(
        f"{terms.city} · {terms.signed_on}", MARGIN, 44, max_width=CONTENT_WIDTH, size=10, color=WHITE
    )
    layout.fill_rect(MARGIN, header_h + 2, CONTENT_WIDTH, 3, GOLD)
    layout.y = header_h + 20

    layout.info_cards(
        [
            ("ARRENDADOR", [terms.landlord_name, f"DNI: {terms.landlord_id}"]),
            ("ARRENDATARIO", [terms.tenant_name, f"DNI/Pasaporte: {terms.tenant_id}", terms.tenant_address]),
            ("HABITACIÓN", [terms.room_name, terms.property_address]),
        ],
        height=96,
    )
    layout.info_boxes([("Renta mensual", terms.rent), ("Fianza", terms.deposit), ("Fin de contrato", terms.end or "—")])

    for number, (title, body) in enumerate(_structured_clauses(terms, house_rules), start=1):
        layout.ensure_space(60)
        layout.flow_text(f"{number}. {title}", size=11, is_bold=True, color=NAVY, spacing_after=3, kind="clause")
        layout.flow_text(body, spacing_after=8)

    for rule in house_rules:
        layout.ensure_space(30)
        layout.bullet(rule, spacing_after=4)

    if terms.notes:
        layout.y += 6
        notes_height = layout.text_height(terms.notes, italic=True)
        layout.section_title("CONDICIONES PARTICULARES", size=12, keep_with=notes_height)
        layout.flow_text(terms.notes, italic=True, color=CHARCOAL, spacing_after=10)

    layout.y += 20
    layout.signatures("EL ARRENDADOR", "EL ARRENDATARIO")


def render_contract(
    tenant: Tenant,
    room: Room,
    prop: Property,
    *,
    today: date,
    template: ContractTemplate = ContractTemplate.LEGAL,
    landlord_name: str = "",
    landlord_id: str = "",
    city: str = "",
    house_rules: Optional[Sequence[str]] = None,
) -> PageLayout:
    """Lay out the contract and return the finished layout (bytes via ``layout.finish()``)."""
    terms = ContractTerms.resolve(
        tenant, room, prop, landlord_name=landlord_name, landlord_id=landlord_id, city=city, today=today
    )
    rules = list(house_rules) if house_rules else list(DEFAULT_HOUSE_RULES)
    layout = PageLayout(title=f"Contrato - {tenant.full_name}", generated_on=today)
    if template == ContractTemplate.STRUCTURED:
        _render_structured(layout, terms, rules)
    else:
        _render_legal(layout, terms, rules)
    layout.finish()
    return layout
