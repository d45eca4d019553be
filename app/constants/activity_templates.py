from app.constants.activity_codes import ActivityCode


ACTIVITY_TEMPLATES = {
    # ---------------- AUTH ----------------
    ActivityCode.LOGIN:
        "{actor_role} ({actor_name}) logged in",

    # ---------------- USERS ----------------
    ActivityCode.CREATE_USER:
        "{actor_role} ({actor_name}) created user {target_name} with role {target_role}",

    ActivityCode.UPDATE_USER:
        "{actor_role} ({actor_name}) updated user {target_name}: {changes}",

    ActivityCode.DELETE_USER:
        "{actor_role} ({actor_name}) deleted user {target_name}",

    # ---------------- CATALOG ----------------
    ActivityCode.CREATE_BRANCH:
        "{actor_role} ({actor_name}) created branch {target_name}",

    ActivityCode.CREATE_ITEM:
        "{actor_role} ({actor_name}) created item {target_name} at branch {branch_id}",

    ActivityCode.CREATE_VEHICLE:
        "{actor_role} ({actor_name}) registered vehicle {target_name}",

    ActivityCode.UPSERT_BUDGET:
        "{actor_role} ({actor_name}) set budget for branch {branch_id} in {month} to {planned}",

    # ---------------- LEDGER ----------------
    ActivityCode.INVENTORY_MOVEMENT:
        "{actor_role} ({actor_name}) recorded {movement_type} of {qty} units "
        "for item {item_id} at branch {branch_id} "
        "(ref: {reference_type}:{reference_id})",

    # ---------------- REQUESTS ----------------
    ActivityCode.CREATE_REQUEST:
        "{actor_role} ({actor_name}) requested {qty} of item {item_id} for branch {branch_id} ({target_name})",

    ActivityCode.ASSIGN_REQUEST:
        "{actor_role} ({actor_name}) assigned request {target_name} to driver {driver_name}",

    ActivityCode.CLAIM_REQUEST:
        "{actor_role} ({actor_name}) claimed request {target_name}",

    ActivityCode.UPDATE_REQUEST_ETA:
        "{actor_role} ({actor_name}) set ETA of request {target_name} to {eta}",

    ActivityCode.UPDATE_REQUEST:
        "{actor_role} ({actor_name}) updated request {target_name}: {changes}",

    ActivityCode.CONFIRM_REQUEST:
        "{actor_role} ({actor_name}) confirmed delivery of request {target_name}",

    ActivityCode.DELETE_REQUEST:
        "{actor_role} ({actor_name}) deleted request {target_name}",

    # ---------------- SNAPSHOT ----------------
    ActivityCode.IMPORT_SNAPSHOT:
        "{actor_role} ({actor_name}) imported a state snapshot: {changes}",
}
