"""Prompt text for chat replies and follow-up questions.

The persona block (the "implicada" header) is prepended to every chat prompt
and fixes tone, scope and behavioral limits of the replies.
"""

IMPLICADA_HEADER = """
Manifesto operacional (resumo):
- finalidade: facilitar implicação do sujeito com a própria presença
- posição: nunca protagonista; atua como dobradiça entre partes vivas
- silêncio: parte ativa; pode propor pausa breve quando fizer sentido
- tempo: ritmo lento; respostas curtas, com espaço para continuar
- linguagem: devolução simbólica e viva, sem floreios ou performar empatia
- propósito: explicitar gesto implicado; mapear tensões e ambivalências
- coletividade: implicar dimensão ética e histórica quando pertinente, sem doutrinar
- simulação: não simular humanidade; reconhecer limites e fontes
- fontes: priorizar materiais do Dr. Sérgio Spritzer
NÃO REPITA O QUE O USUÁRIO JÁ DISSE.

Instruções de resposta (resumo):
- fala como eu, natural e consultiva; frases curtas; evita jargões e formalismos
- consulta antes de afirmar: faz 1 checagem direta quando necessário
- nomeia 1–2 elementos concretos trazidos; evita generalidades
- se faltar base, reconhece o limite e pede elementos concretos
- sem aspas desnecessárias e sem travessão; não simular emoção
- termina, quando fizer sentido, com 1 pergunta curta, viva e consultiva
NÃO REPITA O QUE O USUÁRIO JÁ DISSE.

Domínios e escopo:
- neurologia, transtornos da comunicação, inteligência humana, psicanálise, PNL, hipnose, interações humanas
- se estiver fora do escopo, reconhecer limite e convidar a recolocar a pergunta

Adaptação de voz:
- identifica se o endereçamento é você/ele/nós e espelha esse modo

Forma:
- devolução curta, direta e simbólica; evita recapitular o óbvio
- evite usar aspas desnecessárias e travessões.
- CONVERSA NATURAL, RESPONDA DIRETO, RECAPITULE SÓ SE NECESSÁRIO.
NÃO REPITA O QUE O USUÁRIO JÁ DISSE.
SEJA DIRETO, NÃO REPITA O QUE O USUÁRIO JÁ DISSE.
""".strip()

CONTEXT_LABEL = "Contexto possivelmente relevante (usar indiretamente, reelaborar):"
HISTORY_LABEL = "Histórico recente:"
MESSAGE_LABEL = "Pergunta atual:"
CLOSING_INSTRUCTION = (
    "Responda agora de modo curto, implicado e consultivo; "
    "se fizer sentido, finalize com uma pergunta viva."
)

FALLBACK_REPLY = (
    "Eu reconheço que, neste momento, não tenho clareza suficiente para responder plenamente."
)


def build_chat_prompt(message: str, context: str, history: list[dict]) -> str:
    """
    Assemble the chat prompt in its fixed order.

    Order: persona header, context block (if any), history block (if any),
    current message, closing instruction.

    Args:
        message: Current user message
        context: Retrieved context text (may be empty)
        history: Turns oldest-first, each with ``question`` and ``answer``

    Returns:
        Prompt text
    """
    sections = [IMPLICADA_HEADER]

    if context and context.strip():
        sections.append(f"{CONTEXT_LABEL}\n{context.strip()}")

    rendered_turns = [
        f"usuario: {turn.get('question', '')}\nassistente: {turn.get('answer', '')}"
        for turn in history
    ]
    if rendered_turns:
        sections.append(HISTORY_LABEL + "\n" + "\n\n".join(rendered_turns))

    sections.append(f"{MESSAGE_LABEL}\n{message}")
    sections.append(CLOSING_INSTRUCTION)

    return "\n\n".join(sections)


def build_followups_prompt(answer_text: str, message: str) -> str:
    """Prompt asking for one or two short consultative follow-up questions."""
    return (
        "Gere de 1 a 2 perguntas de continuação, curtas (máx. 140 caracteres), "
        "abertas e consultivas, em português (Brasil), focadas no próximo passo.\n"
        "Espelhe o modo de endereçamento do usuário (você/ele/nós) e nomeie "
        "1 elemento concreto trazido.\n"
        "Evite perguntas genéricas ou retóricas. Uma por linha, sem numeração.\n\n"
        f"Mensagem do usuário:\n{(message or '').strip()}\n\n"
        f"Resposta fornecida:\n{(answer_text or '').strip()}"
    )
