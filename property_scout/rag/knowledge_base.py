"""
Curated knowledge about buying property in Portugal.

Indexed into the ``knowledge`` collection on RAG initialization.
"""

from dataclasses import dataclass, field
from typing import List


@dataclass(frozen=True)
class KnowledgeDocument:
    id: str
    title: str
    content: str
    category: str
    tags: List[str] = field(default_factory=list)


PORTUGAL_REAL_ESTATE_KNOWLEDGE = [
    KnowledgeDocument(
        id="buying-process-overview",
        title="Buying Property in Portugal - Overview",
        content=(
            "Buying property in Portugal usually follows these steps:\n"
            "1. Obtain a NIF, the Portuguese tax number needed for any purchase\n"
            "2. Open a Portuguese bank account (recommended)\n"
            "3. Find a property through agents, portals or private sellers\n"
            "4. Negotiate and agree a price\n"
            "5. Sign the promissory contract (CPCV) and pay a deposit, usually 10-20%\n"
            "6. Run due diligence on registration, debts and licences\n"
            "7. Sign the deed (escritura) before a notary\n"
            "8. Register the property at the Land Registry (Conservatória)\n"
            "9. Pay IMT and stamp duty before the deed"
        ),
        category="buying-process",
        tags=["buying", "process", "steps", "purchase"],
    ),
    KnowledgeDocument(
        id="nif-tax-number",
        title="NIF - Portuguese Tax Number",
        content=(
            "The NIF (Número de Identificação Fiscal) is required to buy property in Portugal. "
            "EU citizens can request it at any tax office (Finanças). Non-EU citizens need a fiscal "
            "representative such as a lawyer or accountant. Bring a passport and proof of address. "
            "It is free in person and usually costs €100-300 through a representative."
        ),
        category="buying-process",
        tags=["nif", "tax", "documents"],
    ),
    KnowledgeDocument(
        id="imt-transfer-tax",
        title="IMT - Property Transfer Tax",
        content=(
            "IMT (Imposto Municipal sobre Transmissões) is the main purchase tax. Residential rates in "
            "mainland Portugal are progressive, from 0% on the first bracket up to 7.5% on the most "
            "expensive homes, with lower rates for permanent residence than for second homes. "
            "Rural land pays a flat 5%. IMT must be paid before the deed is signed."
        ),
        category="taxes",
        tags=["imt", "tax", "transfer", "costs"],
    ),
    KnowledgeDocument(
        id="stamp-duty",
        title="Stamp Duty (Imposto de Selo)",
        content=(
            "Stamp duty is 0.8% of the purchase price or the tax value, whichever is higher, paid with "
            "IMT before the deed. Mortgages pay a further 0.6% on the loan amount. "
            "For a €100,000 property stamp duty is €800."
        ),
        category="taxes",
        tags=["stamp", "duty", "tax", "costs"],
    ),
    KnowledgeDocument(
        id="annual-property-tax",
        title="Annual Property Tax (IMI)",
        content=(
            "IMI (Imposto Municipal sobre Imóveis) is charged every year on the tax value of the "
            "property. Urban property pays 0.3-0.45% depending on the municipality and rural property "
            "pays 0.8%. Properties above €600,000 of tax value may also pay AIMI."
        ),
        category="taxes",
        tags=["imi", "tax", "annual", "costs"],
    ),
    KnowledgeDocument(
        id="land-classification",
        title="Land Classification - Urbano vs Rústico",
        content=(
            "Not all land in Portugal can be built on. Terreno urbano is classified for construction in "
            "the municipal plan (PDM) and shows as urbano in the caderneta predial. Terreno rústico is "
            "agricultural land where houses usually cannot be built; RAN and REN zones are protected "
            "and very restricted. Listings that mention 'lote', 'para construção', 'viabilidade' or "
            "'projeto aprovado' point to buildable land. A PIP (Pedido de Informação Prévia) confirms "
            "what the municipality will allow before you buy. Urban plots typically cost €30-300/sqm, "
            "rural land €1-15/sqm."
        ),
        category="property-types",
        tags=["land", "terreno", "urbano", "rustico", "construction", "plot", "pdm"],
    ),
    KnowledgeDocument(
        id="ruins-renovation",
        title="Buying and Renovating Ruins",
        content=(
            "Ruins are cheap to buy (often €5,000-50,000) and usually come with land, but renovation "
            "often costs more than the purchase, around €1,000-2,000/sqm, and permits can take 6-18 "
            "months. Check for a habitation licence, the existing footprint, and water and electricity "
            "access, and keep a 30% contingency."
        ),
        category="property-types",
        tags=["ruins", "renovation", "restore", "construction"],
    ),
    KnowledgeDocument(
        id="regions-overview",
        title="Regions - Where to Buy",
        content=(
            "Lisbon and Cascais are the most expensive markets with strong rental demand. Sintra and "
            "Torres Vedras offer countryside close to the capital. Porto and the north are greener, "
            "more traditional and generally 30-50% cheaper than Lisbon. The Algarve is sunny, "
            "tourist-heavy and popular with expats. The Alentejo is rural and affordable, with farms, "
            "montes and land from a few euros per square metre. The Silver Coast between Lisbon and "
            "Porto offers beaches and good value."
        ),
        category="regions",
        tags=["lisbon", "porto", "algarve", "alentejo", "sintra", "regions"],
    ),
    KnowledgeDocument(
        id="golden-visa",
        title="Golden Visa Program",
        content=(
            "Portugal's Golden Visa grants residency through investment such as €500,000 in qualifying "
            "funds. Real estate purchases no longer qualify since 2023. Property buyers seeking "
            "residency usually look at the D7 visa instead."
        ),
        category="visas-residency",
        tags=["golden", "visa", "residency", "investment"],
    ),
    KnowledgeDocument(
        id="d7-visa",
        title="D7 Passive Income Visa",
        content=(
            "The D7 visa suits retirees and people with passive income such as pensions, rents or "
            "dividends at least equal to the Portuguese minimum wage. Applicants need a NIF, a "
            "Portuguese bank account and accommodation in Portugal, which can be a purchased or "
            "rented property."
        ),
        category="visas-residency",
        tags=["d7", "visa", "residency", "retirement"],
    ),
]


def get_all_knowledge() -> List[KnowledgeDocument]:
    return list(PORTUGAL_REAL_ESTATE_KNOWLEDGE)
