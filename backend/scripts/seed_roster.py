"""CLI script to fill the database with demo classes, sections and students.
Usage: python scripts/seed_roster.py [--classes N] [--students-per-section N]
"""
import sys
import argparse
import pathlib
# Ensure `backend/` is on sys.path so `roster` package imports work when running this script directly
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))
from sqlmodel import Session
from roster.database import engine, create_db_and_tables
from roster import services
from roster.schemas import ClassIn, SectionIn, StudentIn

SECTION_NAMES = ('A', 'B')
FIRST_NAMES = ('Anna', 'Bence', 'Csilla', 'Dániel', 'Eszter', 'Ferenc', 'Gréta', 'Hanna')
LAST_NAMES = ('Kovács', 'Nagy', 'Tóth', 'Szabó', 'Horváth', 'Varga')


def main(classes: int = 3, students_per_section: int = 4):
    """Create `classes` classes, two sections each and a few students per section.

    Names cycle through fixed lists, so re-running adds another identical
    batch rather than failing.
    """
    create_db_and_tables()
    with Session(engine) as session:
        class_svc = services.ClassService(session)
        section_svc = services.SectionService(session)
        student_svc = services.StudentService(session)
        created = 0
        for grade in range(1, classes + 1):
            c = class_svc.create(ClassIn(name=f'Class {grade}'))
            for section_name in SECTION_NAMES:
                s = section_svc.create(SectionIn(name=section_name, class_id=c.id))
                for n in range(students_per_section):
                    first = FIRST_NAMES[(created + n) % len(FIRST_NAMES)]
                    last = LAST_NAMES[created % len(LAST_NAMES)]
                    student_svc.create(StudentIn(
                        name=f'{first} {last}',
                        email=f'student{created + 1}@example.com',
                        class_id=c.id,
                        section_id=s.id,
                    ))
                    created += 1
            print(f'Created {c.name} with sections {", ".join(SECTION_NAMES)}')
        print(f'Total students created: {created}')

if __name__ == '__main__':
    parser = argparse.ArgumentParser()
    parser.add_argument('--classes', type=int, default=3, help='Number of classes to create')
    parser.add_argument('--students-per-section', type=int, default=4, help='Students created in every section')
    args = parser.parse_args()
    main(classes=args.classes, students_per_section=args.students_per_section)
