"""Lark grammar for the HCL-style configuration language.

Newlines are treated as whitespace. Attributes and blocks both start with an
identifier and no expression can be continued by an identifier, so items are
still unambiguous without explicit terminators.

Identifiers may contain dashes (as in HCL), so `a-b` is a single name;
subtraction needs surrounding spaces.

Quoted templates are parsed by the grammar itself: literal chunks alternate
with `${ expression }` interpolations, so braces and nested quotes inside an
interpolation balance through the parser. The contextual lexer only offers
TEMPLATE_LITERAL between quotes, where it outranks whitespace and comments.
"""

GRAMMAR = r"""
start: body

body: (attribute | block)*

attribute: IDENTIFIER "=" expression
block: IDENTIFIER _label* "{" body "}"
_label: template | IDENTIFIER

?expression: or_expr
           | or_expr "?" expression ":" expression    -> conditional

?or_expr: and_expr
        | or_expr "||" and_expr                      -> or_op

?and_expr: eq_expr
         | and_expr "&&" eq_expr                     -> and_op

?eq_expr: cmp_expr
        | eq_expr "==" cmp_expr                      -> eq
        | eq_expr "!=" cmp_expr                      -> ne

?cmp_expr: add_expr
         | cmp_expr "<" add_expr                     -> lt
         | cmp_expr "<=" add_expr                    -> le
         | cmp_expr ">" add_expr                     -> gt
         | cmp_expr ">=" add_expr                    -> ge

?add_expr: mul_expr
         | add_expr "+" mul_expr                     -> add
         | add_expr "-" mul_expr                     -> sub

?mul_expr: unary_expr
         | mul_expr "*" unary_expr                   -> mul
         | mul_expr "/" unary_expr                   -> div
         | mul_expr "%" unary_expr                   -> mod

?unary_expr: postfix_expr
           | "-" unary_expr                          -> neg
           | "!" unary_expr                          -> not_op

?postfix_expr: primary
             | postfix_expr "." IDENTIFIER           -> get_attr
             | postfix_expr "[" expression "]"       -> index

?primary: NUMBER                                     -> number
        | template
        | IDENTIFIER                                 -> variable
        | IDENTIFIER "(" _arguments? ")"             -> function_call
        | "[" _items? "]"                            -> tuple_expr
        | "{" object_item* "}"                       -> object_expr
        | "(" expression ")"

_arguments: expression ("," expression)* ","?
_items: expression ("," expression)* ","?

object_item: object_key ("=" | ":") expression ","?
?object_key: IDENTIFIER                              -> key_name
           | template                                -> key_string

template: QUOTE _template_item* QUOTE
_template_item: TEMPLATE_LITERAL
              | "${" expression "}"

IDENTIFIER: /[A-Za-z_][A-Za-z0-9_-]*/
NUMBER: /[0-9]+(\.[0-9]+)?([eE][+-]?[0-9]+)?/
QUOTE: "\""
// `$${` is an escaped literal `${`
TEMPLATE_LITERAL.2: /(?:\$\$\{|[^"\\$\n]|\\.|\$(?!\{))+/

LINE_COMMENT: /(#|\/\/)[^\n]*/
BLOCK_COMMENT: /\/\*[\s\S]*?\*\//

%import common.WS
%ignore WS
%ignore LINE_COMMENT
%ignore BLOCK_COMMENT
"""
