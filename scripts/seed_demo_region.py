from medcert.application.dto.auth_dto import SessionContext
from medcert.bootstrap.startup import seed_admin
from medcert.container import build_container
from medcert.domain.constants import ModuleStatus, Profession


def main() -> None:
    container = build_container()
    admin_id = seed_admin(container)
    actor = SessionContext(user_id=admin_id, login="seed", role="admin")

    region = container.region_service.create_region("Tashkent Region", 2, actor)
    doctor = container.candidate_service.list_candidates(
        actor, region_id=region.id, profession=Profession.DOCTOR
    )[0]
    container.candidate_service.update_candidate(
        doctor.id,
        {"full_name": "Sample Doctor", "pinfl": "12345678901234", "cert1": True},
        actor,
    )
    container.module_service.submit_module_result(doctor.id, 1, ModuleStatus.PASSED, actor)
    container.candidate_service.update_candidate(doctor.id, {"cert2": True}, actor)
    print(f"Регион «{region.name}» создан: {region.brigade_count} бригады, {region.slot_count} мест")


if __name__ == "__main__":
    main()
