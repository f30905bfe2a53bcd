"""Default categories and rules seeded into an empty database."""

# (name, type, color)
DEFAULT_CATEGORIES: list[tuple[str, str, str]] = [
    ("Alimenti", "expense", "#ff6b6b"),
    ("Trasporti", "expense", "#4ecdc4"),
    ("Casa", "expense", "#45b7d1"),
    ("Utenze", "expense", "#f9ca24"),
    ("Salute", "expense", "#f0932b"),
    ("Ristorazione", "expense", "#eb4d4b"),
    ("Abbigliamento", "expense", "#6c5ce7"),
    ("Svago", "expense", "#a29bfe"),
    ("Abbonamenti", "expense", "#fd79a8"),
    ("Spese Bancarie", "expense", "#636e72"),
    ("Stipendio", "income", "#00b894"),
    ("Altro", "both", "#74b9ff"),
]

# (category name, pattern, priority); all "contains" rules.
# Lower priority numbers are evaluated first.
DEFAULT_RULES: list[tuple[str, str, int]] = [
    ("Alimenti", "supermercato", 10),
    ("Alimenti", "conad", 10),
    ("Alimenti", "famila", 10),
    ("Alimenti", "pim", 10),
    ("Alimenti", "macelleria", 10),
    ("Alimenti", "lidl", 10),
    ("Alimenti", "global fish", 10),
    ("Alimenti", "stazione frutta", 10),
    ("Trasporti", "benzina", 10),
    ("Trasporti", "carburante", 10),
    ("Trasporti", "eni", 10),
    ("Trasporti", "tamoil", 10),
    ("Trasporti", "pedaggio autostradale", 5),
    ("Trasporti", "telepedaggio", 5),
    ("Trasporti", "mooneygo", 10),
    ("Trasporti", "enerpetroli", 10),
    ("Casa", "affitto", 10),
    ("Casa", "mutuo", 5),
    ("Casa", "condominio", 5),
    ("Casa", "brico", 10),
    ("Utenze", "enel", 10),
    ("Utenze", "tim", 10),
    ("Utenze", "vodafone", 10),
    ("Utenze", "wind", 10),
    ("Salute", "farmacia", 10),
    ("Salute", "medico", 10),
    ("Salute", "ospedale", 10),
    ("Ristorazione", "ristorante", 10),
    ("Ristorazione", "pizzeria", 10),
    ("Ristorazione", "mcdonald", 10),
    ("Ristorazione", "deliveroo", 10),
    ("Ristorazione", "justeatitaly", 10),
    ("Abbigliamento", "zara", 10),
    ("Abbigliamento", "h&m", 10),
    ("Abbigliamento", "decathlon", 10),
    ("Svago", "cinema", 10),
    ("Svago", "teatro", 10),
    ("Abbonamenti", "netflix", 10),
    ("Abbonamenti", "spotify", 10),
    ("Abbonamenti", "amazon prime", 10),
    ("Abbonamenti", "paypal", 15),
    ("Spese Bancarie", "commissioni", 10),
    ("Spese Bancarie", "canone", 10),
    ("Spese Bancarie", "bollo", 10),
    ("Stipendio", "accredito stipendio", 5),
    ("Stipendio", "stipendio", 10),
    ("Stipendio", "cedolino", 10),
    ("Altro", "tabacchi", 10),
    ("Altro", "prelievo up", 15),
    ("Altro", "pagamento pos", 20),
]
