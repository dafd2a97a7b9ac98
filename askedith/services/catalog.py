import json, logging, math
from typing import Dict, List, Optional, Tuple
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlmodel import Session, select
from askedith.models import Resource

logger = logging.getLogger(__name__)

EARTH_RADIUS_MILES = 3958.8
DEFAULT_RADIUS_MILES = 25
# Washington DC, used when a ZIP code has no known centroid
DEFAULT_CENTER = (38.8977, -77.0365)

ZIP_CENTROIDS: Dict[str, Tuple[float, float]] = {
    "20420": (38.9015, -77.0353),
    "20001": (38.9101, -77.0147),
    "20814": (38.9847, -77.0947),
    "22101": (38.9339, -77.1773),
    "22102": (38.9267, -77.2344),
    "22201": (38.8868, -77.0952),
    "22314": (38.8048, -77.0469),
}

# resource-type answers (question 15) -> catalog category
RESOURCE_TYPE_CATEGORIES = {
    "Veteran Benefits specialists": "Veteran Benefits",
    "Aging Life Care Professionals": "Aging Life Care Professionals",
    "Home Care Companies": "Home Care Companies",
    "Government Agencies": "Government Agencies",
    "Financial Advisors": "Financial Advisors",
}

SEED_RESOURCES: List[dict] = [
    {"category": "Veteran Benefits", "name": "VA Caregiver Support",
     "company_name": "VA Caregiver Support Program", "address": "810 Vermont Avenue, NW",
     "city": "Washington", "county": "District of Columbia", "zip_code": "20420",
     "email": "caregiversupport@va.gov", "phone": "855-260-3274", "website": "caregiver.va.gov",
     "hours": "8 AM – 4 PM Monday–Friday",
     "description": "Official VA program providing resources and support for caregivers of veterans",
     "latitude": 38.9015, "longitude": -77.0353},
    {"category": "Aging Life Care Professionals", "name": "Senior Life Navigators",
     "company_name": "Senior Life Navigators, LLC", "address": "8300 Greensboro Dr, Suite 800",
     "city": "McLean", "county": "Fairfax", "zip_code": "22102",
     "email": "info@seniorlifenavigators.com", "phone": "571-555-8200", "website": "seniorlifenavigators.com",
     "hours": "9 AM – 5 PM Monday–Friday",
     "description": "Professional geriatric care managers providing assessments and care planning",
     "latitude": 38.9267, "longitude": -77.2344},
    {"category": "Home Care Companies", "name": "Comfort Home Care",
     "company_name": "Comfort Home Care, Inc.", "address": "4401 East West Hwy, Suite 300",
     "city": "Bethesda", "county": "Montgomery", "zip_code": "20814",
     "email": "care@comforthomecare.com", "phone": "301-555-7400", "website": "comforthomecare.com",
     "hours": "24/7 Service, Office: 8 AM – 8 PM Daily",
     "description": "Licensed home care agency providing personal care and companionship",
     "latitude": 38.9847, "longitude": -77.0947},
]

class ResourceRecord(BaseModel):
    """Read-only view of a Resource as handed to the browser."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: int
    category: str
    name: str
    company_name: Optional[str] = None
    address: str = ""
    city: Optional[str] = None
    county: Optional[str] = None
    zip_code: Optional[str] = None
    email: str
    phone: Optional[str] = None
    website: Optional[str] = None
    hours: Optional[str] = None
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    distance_miles: Optional[float] = None

def to_record(resource: Resource, distance: Optional[float] = None) -> ResourceRecord:
    data = resource.model_dump()
    if distance is not None:
        data["distance_miles"] = round(distance, 2)
    return ResourceRecord(**data)

def seed_resources(session: Session, force: bool = False) -> int:
    """Insert the built-in resources when the table is empty. Returns how many rows were added."""
    existing = session.exec(select(Resource)).all()
    if existing and not force:
        return 0
    if force:
        for r in existing:
            session.delete(r)
    for data in SEED_RESOURCES:
        session.add(Resource(**data))
    session.commit()
    logger.info(f"Seeded {len(SEED_RESOURCES)} resources")
    return len(SEED_RESOURCES)

def haversine_miles(a: Tuple[float, float], b: Tuple[float, float]) -> float:
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlat, dlon = lat2 - lat1, lon2 - lon1
    h = math.sin(dlat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    return EARTH_RADIUS_MILES * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))

def get_resource(session: Session, resource_id: int) -> Optional[ResourceRecord]:
    res = session.get(Resource, resource_id)
    return to_record(res) if res else None

def list_resources(session: Session, category: str | None = None, zip_code: str | None = None,
                   radius_miles: float = DEFAULT_RADIUS_MILES) -> List[ResourceRecord]:
    if zip_code:
        return resources_near(session, zip_code, radius_miles)
    stmt = select(Resource)
    if category:
        stmt = stmt.where(Resource.category == category)
    return [to_record(r) for r in session.exec(stmt.order_by(Resource.id)).all()]

def resources_near(session: Session, zip_code: str, radius_miles: float = DEFAULT_RADIUS_MILES) -> List[ResourceRecord]:
    exact = session.exec(select(Resource).where(Resource.zip_code == zip_code).order_by(Resource.id)).all()
    if exact:
        return [to_record(r) for r in exact]

    center = ZIP_CENTROIDS.get(zip_code, DEFAULT_CENTER)
    scored = []
    for r in session.exec(select(Resource)).all():
        if r.latitude is None or r.longitude is None:
            continue
        d = haversine_miles(center, (r.latitude, r.longitude))
        if d <= radius_miles:
            scored.append((d, r))
    scored.sort(key=lambda x: x[0])
    return [to_record(r, d) for d, r in scored]

def categories_for_answers(answers: Dict[str, str], key: str = "q15") -> List[str]:
    try:
        chosen = json.loads(answers.get(key) or "[]")
    except ValueError:
        return []
    if not isinstance(chosen, list):
        return []
    return [RESOURCE_TYPE_CATEGORIES[c] for c in chosen if c in RESOURCE_TYPE_CATEGORIES]

def match_resources(resources: List[ResourceRecord], answers: Dict[str, str]) -> List[ResourceRecord]:
    """Resources whose category the caregiver asked for; everything when no type was chosen."""
    cats = categories_for_answers(answers)
    if not cats:
        return list(resources)
    return [r for r in resources if r.category in cats]
