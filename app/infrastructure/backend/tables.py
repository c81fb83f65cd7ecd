"""Table names and select projections used against the hosted backend.

Projections use PostgREST embedding syntax (``alias:fk_column(columns)``).
"""

PERSON_TABLE = "person"
ADDRESS_TABLE = "address"
ACCOUNT_TABLE = "app_user"
CLIENT_TABLE = "client"
THERAPIST_TABLE = "therapist"
THERAPY_TABLE = "therapy"
THERAPIST_THERAPY_TABLE = "therapist_therapy_plan"
APPOINTMENT_TABLE = "appointment"

PERSON_COLUMNS = "id,name,lastname,birthdate,created_at,updated_at"
ACCOUNT_COLUMNS = "id,person_id,email,username,status,created_at,updated_at"

CLIENT_SELECT = f"id,public_id,person_id,onboard_date,created_at,updated_at,person:person_id({PERSON_COLUMNS})"
CLIENT_SEARCH_SELECT = (
    "id,public_id,person_id,onboard_date,created_at,updated_at,"
    f"person:person_id!inner({PERSON_COLUMNS})"
)
CLIENT_LOOKUP_SELECT = "id,public_id,person:person_id!inner(id,name,lastname)"

THERAPIST_SELECT = (
    "id,public_id,user_id,resume,onboard_date,created_at,updated_at,"
    f"app_user:user_id({ACCOUNT_COLUMNS},person:person_id({PERSON_COLUMNS}))"
)
THERAPIST_SEARCH_SELECT = (
    "id,public_id,user_id,resume,onboard_date,created_at,updated_at,"
    f"app_user:user_id!inner({ACCOUNT_COLUMNS},person:person_id!inner({PERSON_COLUMNS}))"
)
THERAPIST_LOOKUP_SELECT = (
    "id,public_id,"
    "app_user:user_id!inner(person:person_id!inner(name,lastname))"
)
THERAPIST_LOOKUP_BY_THERAPY_SELECT = (
    f"{THERAPIST_LOOKUP_SELECT},{THERAPIST_THERAPY_TABLE}!inner(therapy_id)"
)

APPOINTMENT_SELECT = (
    "id,client_id,therapist_id,therapy_id,date,start_time,end_time,room,status,phone,notes,"
    "created_at,updated_at,"
    "client:client_id(person:person_id(name,lastname)),"
    "therapist:therapist_id(app_user:user_id(person:person_id(name,lastname))),"
    "therapy:therapy_id(name)"
)
