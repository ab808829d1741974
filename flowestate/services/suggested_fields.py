"""
Built-in bilingual custom field suggestions for each property/listing type combination.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple


class SuggestedField(NamedTuple):
    icon: str
    name_es: str
    name_en: str
    field_type: str
    placeholder_es: str
    placeholder_en: str

    def field_name(self, language: str) -> str:
        return self.name_es if language == "es" else self.name_en

    def placeholder(self, language: str) -> str:
        return self.placeholder_es if language == "es" else self.placeholder_en


BEDROOMS_3 = SuggestedField("🛏️", "Habitaciones", "Bedrooms", "number", "Ej: 3", "e.g: 3")
BEDROOMS_2 = SuggestedField("🛏️", "Habitaciones", "Bedrooms", "number", "Ej: 2", "e.g: 2")
BATHROOMS_2 = SuggestedField("🚿", "Baños", "Bathrooms", "number", "Ej: 2", "e.g: 2")
BATHROOMS_1 = SuggestedField("🚿", "Baños", "Bathrooms", "number", "Ej: 1", "e.g: 1")
GARAGE = SuggestedField("🚗", "Garaje", "Garage", "text", "Ej: 2 espacios", "e.g: 2 spaces")
PARKING = SuggestedField("🚗", "Estacionamiento", "Parking", "text", "Ej: 1 espacio", "e.g: 1 space")
FLOOR = SuggestedField("🏢", "Piso", "Floor", "text", "Ej: Piso 3", "e.g: 3rd floor")


def _area(sqm: int) -> SuggestedField:
    return SuggestedField("📏", "Área (m²)", "Area (sqm)", "number", f"Ej: {sqm}", f"e.g: {sqm}")


SUGGESTED_FIELDS: Dict[Tuple[str, str], List[SuggestedField]] = {
    ("house", "sale"): [
        BEDROOMS_3,
        BATHROOMS_2,
        GARAGE,
        SuggestedField("📏", "Área construcción (m²)", "Built area (sqm)", "number", "Ej: 150", "e.g: 150"),
        SuggestedField("🌳", "Área terreno (m²)", "Land area (sqm)", "number", "Ej: 250", "e.g: 250"),
    ],
    ("house", "rent"): [
        BEDROOMS_3,
        BATHROOMS_2,
        GARAGE,
        SuggestedField("💡", "Servicios incluidos", "Utilities included", "text", "Ej: Agua, luz", "e.g: Water, electricity"),
        SuggestedField("🐶", "Mascotas", "Pets", "text", "Ej: Permitidas", "e.g: Allowed"),
    ],
    ("condo", "sale"): [
        BEDROOMS_2,
        BATHROOMS_2,
        PARKING,
        SuggestedField("🏊", "Amenidades", "Amenities", "text", "Ej: Piscina, gimnasio", "e.g: Pool, gym"),
        _area(80),
    ],
    ("condo", "rent"): [
        BEDROOMS_2,
        BATHROOMS_2,
        PARKING,
        SuggestedField("🏊", "Amenidades", "Amenities", "text", "Ej: Piscina, gym", "e.g: Pool, gym"),
        SuggestedField("💰", "Mantenimiento", "HOA fee", "text", "Ej: Incluido", "e.g: Included"),
    ],
    ("apartment", "sale"): [
        BEDROOMS_2,
        BATHROOMS_1,
        _area(65),
        FLOOR,
        PARKING,
    ],
    ("apartment", "rent"): [
        BEDROOMS_2,
        BATHROOMS_1,
        _area(65),
        FLOOR,
        SuggestedField("💡", "Servicios incluidos", "Utilities included", "text", "Ej: Agua", "e.g: Water"),
    ],
    ("land", "sale"): [
        _area(1000),
        SuggestedField("🌳", "Topografía", "Topography", "text", "Ej: Plano", "e.g: Flat"),
        SuggestedField("💧", "Servicios", "Utilities", "text", "Ej: Agua, luz", "e.g: Water, electricity"),
        SuggestedField("🏗️", "Zonificación", "Zoning", "text", "Ej: Residencial", "e.g: Residential"),
        SuggestedField("🚗", "Acceso", "Access", "text", "Ej: Calle pavimentada", "e.g: Paved road"),
    ],
    ("land", "rent"): [
        _area(500),
        SuggestedField("🌳", "Uso permitido", "Permitted use", "text", "Ej: Agrícola", "e.g: Agricultural"),
        SuggestedField("💧", "Servicios", "Utilities", "text", "Ej: Agua", "e.g: Water"),
        SuggestedField("🚗", "Acceso", "Access", "text", "Ej: Camino de tierra", "e.g: Dirt road"),
        SuggestedField("🔒", "Cercado", "Fencing", "text", "Ej: Sí", "e.g: Yes"),
    ],
    ("commercial", "sale"): [
        _area(200),
        SuggestedField("🏢", "Tipo de local", "Property type", "text", "Ej: Oficina", "e.g: Office"),
        SuggestedField("🚗", "Estacionamientos", "Parking spaces", "number", "Ej: 5", "e.g: 5"),
        SuggestedField("🏗️", "Año construcción", "Year built", "number", "Ej: 2020", "e.g: 2020"),
        SuggestedField("💡", "Servicios", "Utilities", "text", "Ej: Todos", "e.g: All"),
    ],
    ("commercial", "rent"): [
        _area(150),
        SuggestedField("🏢", "Tipo de local", "Property type", "text", "Ej: Local comercial", "e.g: Retail"),
        SuggestedField("🚗", "Estacionamientos", "Parking spaces", "number", "Ej: 3", "e.g: 3"),
        SuggestedField("💰", "Gastos comunes", "Common expenses", "text", "Ej: Incluidos", "e.g: Included"),
        SuggestedField("🏪", "Uso recomendado", "Recommended use", "text", "Ej: Restaurante", "e.g: Restaurant"),
    ],
}


def suggestions_for(property_type: str, listing_type: str) -> Optional[List[SuggestedField]]:
    return SUGGESTED_FIELDS.get((property_type, listing_type))
