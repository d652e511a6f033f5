# demo.py: run the search on two sample tables and print the results
from solver.orchestrator import find_complements_string
from render import render_results_text

SAMPLE_WIDE = (
    '[ "a1",   "a2",   "a3",   "a4"   ],     <- first line\n'
    ' \t[ "b1",   null,   null,   "b4"   ],     \n'
    ' \t[ null,   "c2",   "c3",   null   ],     <- 3rd line\n'
    ' \t[ "d1",   null,   null,   "d4"   ],\n'
    ' \t[ null,   "e2",   "e3",   null   ],     <- 5th line\n'
    ' \t[ null,   "f2",   "f3",   "f4"   ],\n'
    ' \t[ "h1",   null ,  null,   null   ],     <- 7th line\n'
    ' \t[ "g1",   null ,  null,   null   ]'
)

SAMPLE_BRACED = (
    '{ \t[ "a1",   null,   null,   null   ],\n'
    ' \t[ null,   "b2",   null,   "b4"   ],     \n'
    ' \t[ null,   null,   "c3",   null   ]\n}'
)

SAMPLES = (SAMPLE_WIDE, SAMPLE_BRACED)


def main() -> None:
    for text in SAMPLES:
        _ok, groups, _reason, _meta = find_complements_string(text)
        print(render_results_text(groups), end="")


if __name__ == "__main__":
    main()
