"""
Default categories shared by every vault.

Descriptions double as keyword lists for the local classifier, so they favour
concrete nouns people actually type in chat.
"""

from cofre.models import Category, CategoryKind

DEFAULT_CATEGORIES = [
    Category(
        id="f00110c1-fd2f-42d2-b579-8cc337668d82",
        name="🏡 Housing",
        code="1",
        description=(
            "Rent, condo fees, home bills such as electricity, water, internet, "
            "gas, maintenance, property tax, repairs, home insurance, mortgage, "
            "plumber, electrician."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="a29eb76c-0def-43ef-9c21-95928616e6f5",
        name="🛒 Shopping",
        code="2",
        description=(
            "Supermarket, groceries, market, bakery, bread, milk, meat, "
            "toiletries, shampoo, soap, cleaning supplies, household items, "
            "small everyday purchases."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="f2662cda-938f-4af6-8fcc-b9d6b7bfc061",
        name="🚗 Transport",
        code="3",
        description=(
            "Fuel, gasoline, uber, taxi, bus, subway, train, parking, toll, "
            "car maintenance, mechanic, car insurance, tires."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="9854990d-b348-4572-a077-dd4710cc9973",
        name="🎓 Education",
        code="4",
        description=(
            "School, college, university, tuition, course, books, school "
            "supplies, language classes, workshop, certification."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="2d865bfa-84a3-4b06-9ac0-23bb50439954",
        name="🏥 Health",
        code="5",
        description=(
            "Doctor, dentist, hospital, medicine, pharmacy, drugstore, exam, "
            "therapy, health insurance, gym, glasses."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="c5d35a1b-5d61-4412-9083-52bd9468fbe5",
        name="🎉 Leisure",
        code="6",
        description=(
            "Restaurant, bar, pizza, burger, coffee, cinema, movie, concert, "
            "show, travel, trip, hotel, streaming, netflix, spotify, games, "
            "party, delivery."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="206b9595-4929-4cc9-8bd9-8ec2aa73a27a",
        name="💰 Investments",
        code="7",
        description=(
            "Investment, savings, stocks, bonds, funds, crypto, bitcoin, "
            "pension, retirement, emergency reserve."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="3562366d-861c-46de-a1f3-2d468134ec7f",
        name="👪 Family & Pets",
        code="8",
        description=(
            "Children, kids, babysitter, daycare, allowance, pet, dog, cat, "
            "veterinarian, pet food, pet shop, toys."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="ee5bc836-ca4c-432e-afeb-fc8728f54350",
        name="🎁 Gifts",
        code="9",
        description=(
            "Gift, present, birthday, wedding, anniversary, christmas, "
            "donation, charity, flowers."
        ),
        transaction_kind=CategoryKind.EXPENSE,
    ),
    Category(
        id="d9837314-2262-4ff1-a74c-a1a64deedd34",
        name="📦 Others",
        code="10",
        description=(
            "Anything that fits no other category: fees, fines, bank charges, "
            "miscellaneous income or expenses."
        ),
        transaction_kind=CategoryKind.BOTH,
    ),
    Category(
        id="d17708cd-dac1-4b3f-a647-c79840d67ee5",
        name="💼 Work",
        code="11",
        description=(
            "Salary, paycheck, wages, bonus, freelance, commission, consulting, "
            "invoice payment, refund, reimbursement."
        ),
        transaction_kind=CategoryKind.INCOME,
    ),
]
