"""
grammar.py — Contract language PEG grammar
==========================================

Parsimonious grammar for contract clauses and declared type references::

    requires positive: x > 0;
    ensures result.total == x * 2 && result.ok;
    ensures rex: result.code == "[A-Z]{3}[0-9]{2}";

    List<Pet>    Map<String, Integer>    Pet[]

Entry rules: ``contracts`` (a block of clauses with kinds), ``contract``
(one clause with its kind), ``clause`` (label and expression only),
``expr`` and ``type_ref``.
"""

from __future__ import annotations

from parsimonious.grammar import Grammar

CONTRACT_GRAMMAR = r'''
    # ─────────────────────────────────────────────────────────────
    # Contracts
    # ─────────────────────────────────────────────────────────────

    contracts           = _ contract*
    contract            = _ contract_kind __ contract_label? expr _ ";"? _
    clause              = _ contract_label? expr _ ";"? _
    contract_kind       = "requires" / "ensures"
    contract_label      = identifier _ ":" _

    # ─────────────────────────────────────────────────────────────
    # Expressions (lowest precedence first)
    # ─────────────────────────────────────────────────────────────

    expr                = and_expr (_ "||" _ and_expr)*
    and_expr            = eq_expr (_ "&&" _ eq_expr)*
    eq_expr             = rel_expr (_ eq_op _ rel_expr)*
    rel_expr            = add_expr (_ rel_op _ add_expr)*
    add_expr            = mul_expr (_ add_op _ mul_expr)*
    mul_expr            = unary_expr (_ mul_op _ unary_expr)*

    eq_op               = "==" / "!="
    rel_op              = "<=" / ">=" / "<" / ">"
    add_op              = "+" / "-"
    mul_op              = "*" / "/" / "%"

    unary_expr          = prefixed / primary
    prefixed            = unary_op _ unary_expr
    unary_op            = "!" / "-"

    primary             = literal / call / access / group
    group               = "(" _ expr _ ")"
    call                = identifier _ "(" _ arguments? _ ")"
    arguments           = expr (_ "," _ expr)*

    access              = identifier access_tail*
    access_tail         = member / index
    member              = _ "." _ identifier
    index               = _ "[" _ expr _ "]"

    # ─────────────────────────────────────────────────────────────
    # Literals
    # ─────────────────────────────────────────────────────────────

    literal             = float_literal / integer_literal / bool_literal / string_literal
    float_literal       = ~r"\d+\.\d+([eE][+-]?\d+)?"
    integer_literal     = ~r"\d+"
    bool_literal        = ("true" / "false") !word_char
    string_literal      = ~r'"(?:[^"\\]|\\.)*"'

    # ─────────────────────────────────────────────────────────────
    # Type references
    # ─────────────────────────────────────────────────────────────

    type_ref            = _ type_atom array_suffix* _
    type_atom           = generic_type / type_name
    generic_type        = type_name _ "<" _ type_ref (_ "," _ type_ref)* _ ">"
    type_name           = ~r"[a-zA-Z_][a-zA-Z0-9_.\-]*"
    array_suffix        = _ "[" _ "]"

    # ─────────────────────────────────────────────────────────────
    # Identifiers & Whitespace
    # ─────────────────────────────────────────────────────────────

    identifier          = !keyword ~r"[a-zA-Z_][a-zA-Z0-9_]*"
    keyword             = ("true" / "false" / "requires" / "ensures") !word_char
    word_char           = ~r"[a-zA-Z0-9_]"
    _                   = ~r"(\s|//[^\n]*)*"
    __                  = ~r"\s+"
'''

GRAMMAR = Grammar(CONTRACT_GRAMMAR)

__all__ = ["CONTRACT_GRAMMAR", "GRAMMAR"]
