"""nextstarter: interactive scaffolder for Next.js + Tailwind + shadcn starter apps."""

__version__ = "0.1.0"
