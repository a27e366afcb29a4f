"""Terminal screens, one per step id.

Each screen prompts with questionary and returns an Outcome for the
controller: partial updates, a whole new state, or a Nav signal. All
behaviour lives in the modules the screens call; a screen only asks and
reports.
"""

from pathlib import Path

import questionary
from questionary import Choice

from core.api.client import ApiError
from editor.palette import Command, PalettePage
from editor.richtext import DecisionEmbed, MediaEmbed, RichText, TextRun
from editor.session import StepEditorSession
from editor.tokens import encode, render_label
from editor.trigger import TriggerDetector
from onboarding import graph, ordering
from onboarding.batch import (
    AgentCreationStatus,
    BatchCreationCoordinator,
    BatchResult,
    CreationState,
    IdentifierResolutionError,
)
from onboarding.content import (
    ContentSaveError,
    advance_multi,
    advance_single,
    seed_single,
    start_multi_agent,
)
from onboarding.naming import NameValidationError, validate_multi_names
from onboarding.single import confirm_created_agent, create_single_agent
from onboarding.state import (
    PRINCIPAL_KEY,
    AgentContent,
    ContentPhase,
    CreationType,
    StepId,
    WizardMode,
    WizardState,
    apply_updates,
)
from onboarding.templates import principal_template, specialist_templates
from onboarding.ui import STYLE, print_error, print_header, print_info
from onboarding.wizard import Nav, Outcome, Screen, WizardContext

_BACK = "__back__"
_CONTINUE = "__continue__"
_SEARCH = "__search__"

_STATE_SYMBOLS = {
    CreationState.PENDING: "·",
    CreationState.CREATING: "…",
    CreationState.SUCCESS: "✓",
    CreationState.ERROR: "✗",
}


async def _select(message: str, choices: list[Choice]) -> str | None:
    return await questionary.select(message, choices=choices, style=STYLE).ask_async()


def _preview(doc: RichText) -> str:
    """Plain rendering: tokens as [Verb: label], media as [mídia: name]."""
    parts: list[str] = []
    for run in doc.runs:
        if isinstance(run, TextRun):
            parts.append(run.text)
        elif isinstance(run, DecisionEmbed):
            parts.append(f"[{render_label(run.token)}]")
        elif isinstance(run, MediaEmbed):
            parts.append(f"[mídia: {run.name or run.url}]")
    return "".join(parts).strip() or "(vazio)"


# -- shared ------------------------------------------------------------------


async def select_mode(ctx: WizardContext, state: WizardState) -> Outcome:
    print_header("Criar agentes")
    mode = await _select(
        "Como você quer começar?",
        [
            Choice("Agente único", WizardMode.SINGLE.value),
            Choice("Sistema multiagentes (principal + especialistas)", WizardMode.MULTI.value),
        ],
    )
    if mode is None:
        return Nav.CLOSE
    if mode == WizardMode.SINGLE:
        return {"mode": WizardMode.SINGLE, "current_step": StepId.SELECT_CREATION_TYPE}
    return {"mode": WizardMode.MULTI, "current_step": StepId.SELECT_TEMPLATES}


async def final_confirmation(ctx: WizardContext, state: WizardState) -> Outcome:
    print_header("Tudo pronto!")
    if state.mode == WizardMode.SINGLE and state.single.created_agent:
        print_info(f"Agente configurado: {state.single.created_agent.name}")
    else:
        for agent in state.multi.created_agents:
            mark = "✓" if agent.id in state.multi.edited_contents else "·"
            print_info(f"  {mark} {agent.name}")
    choice = await _select(
        "Concluir?",
        [Choice("Concluir", _CONTINUE), Choice("Voltar", _BACK)],
    )
    if choice == _BACK:
        return Nav.BACK
    return Nav.CLOSE


async def not_implemented(ctx: WizardContext, state: WizardState) -> Outcome:
    print_error(f"Step não implementado: {state.current_step}")
    choice = await _select(
        "O que deseja fazer?",
        [Choice("Voltar", _BACK), Choice("Fechar", "close")],
    )
    return Nav.BACK if choice == _BACK else Nav.CLOSE


# -- single agent ------------------------------------------------------------


async def select_creation_type(ctx: WizardContext, state: WizardState) -> Outcome:
    choice = await _select(
        "Como criar o agente?",
        [
            Choice("Do zero", CreationType.SCRATCH.value),
            Choice("A partir de um modelo", CreationType.TEMPLATE.value),
            Choice("Voltar", _BACK),
        ],
    )
    if choice is None:
        return Nav.CLOSE
    if choice == _BACK:
        return Nav.BACK
    if choice == CreationType.TEMPLATE:
        return {
            "single": {"creation_type": CreationType.TEMPLATE},
            "current_step": StepId.SELECT_TEMPLATE,
        }
    return {
        "single": {"creation_type": CreationType.SCRATCH, "template": None, "content": None},
        "current_step": StepId.DEFINE_NAME,
    }


async def select_template(ctx: WizardContext, state: WizardState) -> Outcome:
    if not ctx.templates:
        print_error("Nenhum modelo disponível.")
        return Nav.BACK
    choices = [Choice(f"{t.name} ({t.area})", str(i)) for i, t in enumerate(ctx.templates)]
    choices.append(Choice("Voltar", _BACK))
    choice = await _select("Escolha um modelo:", choices)
    if choice is None:
        return Nav.CLOSE
    if choice == _BACK:
        return Nav.BACK
    template = ctx.templates[int(choice)]
    return {
        "single": {"template": template, "name": template.name, "content": None},
        "current_step": StepId.DEFINE_NAME,
    }


async def define_name(ctx: WizardContext, state: WizardState) -> Outcome:
    name = await questionary.text(
        "Nome do agente:", default=state.single.name, style=STYLE
    ).ask_async()
    if name is None:
        return Nav.BACK
    is_principal = await questionary.confirm(
        "Definir como agente principal?", default=state.single.is_principal, style=STYLE
    ).ask_async()
    if is_principal is None:
        return Nav.BACK

    template = state.single.template if state.single.creation_type == CreationType.TEMPLATE else None
    try:
        agent = await create_single_agent(
            ctx.agents,
            name,
            is_principal=is_principal,
            template_id=template.id if template else None,
        )
    except NameValidationError as e:
        print_error(e.errors.get("name", str(e)))
        return {"single": {"name": name}}
    except ApiError as e:
        print_error(f"Erro ao criar agente: {e}")
        return {"single": {"name": name}}

    return {
        "single": {"name": agent.name, "is_principal": is_principal, "created_agent": agent},
        "current_step": StepId.CREATION_CONFIRM,
    }


async def creation_confirm(ctx: WizardContext, state: WizardState) -> Outcome:
    provisional = state.single.created_agent
    if provisional is None:
        print_error("Dados do agente não encontrados")
        return Nav.BACK
    print_info("Confirmando criação do agente...")
    result = await confirm_created_agent(
        ctx.agents,
        provisional,
        retries=int(ctx.setting("single.confirm_retries", 5)),
        delay=float(ctx.setting("single.confirm_delay", 1.0)),
    )
    if result.warning:
        print_error(result.warning)
    else:
        print_info(f"✓ Agente {result.agent.name} criado (id {result.agent.id})")

    choice = await _select(
        "Próximo passo:",
        [Choice("Configurar regras", _CONTINUE), Choice("Voltar", _BACK)],
    )
    if choice == _BACK:
        return Nav.BACK
    if choice is None:
        return Nav.CLOSE
    confirmed = apply_updates(
        state,
        {"single": {"created_agent": result.agent}, "current_step": StepId.EDIT_RULES},
    )
    return seed_single(confirmed, ctx.embeds)


async def edit_single_content(ctx: WizardContext, state: WizardState) -> Outcome:
    """edit-rules, edit-steps and edit-faq for a single agent."""
    state = seed_single(state, ctx.embeds)
    phase = {
        StepId.EDIT_RULES: ContentPhase.RULES,
        StepId.EDIT_STEPS: ContentPhase.STEPS,
        StepId.EDIT_FAQ: ContentPhase.FAQ,
    }[state.current_step]
    agent = state.single.created_agent
    content, action = await _edit_phase(
        ctx, phase, state.single.content or AgentContent(), agent.id if agent else None
    )
    edited = apply_updates(state, {"single": {"content": content}})
    if action == _BACK:
        return graph.back(edited)
    if action is None:
        return Nav.CLOSE
    try:
        return await advance_single(edited, ctx.content, ctx.embeds)
    except ContentSaveError as e:
        print_error(str(e))
        return edited


# -- multi agent -------------------------------------------------------------


async def select_templates(ctx: WizardContext, state: WizardState) -> Outcome:
    query = await questionary.text(
        "Filtrar modelos (nome ou área, Enter para todos):", style=STYLE
    ).ask_async()
    if query is None:
        return Nav.BACK
    available = specialist_templates(ctx.templates, query)
    if not available:
        print_error("Nenhum modelo encontrado.")
        return Nav.STAY
    selected_ids = {t.id for t in state.multi.templates}
    picked = await questionary.checkbox(
        "Selecione os agentes especialistas:",
        choices=[
            Choice(f"{t.name} ({t.area})", t.id, checked=t.id in selected_ids)
            for t in available
        ],
        style=STYLE,
    ).ask_async()
    if picked is None:
        return Nav.BACK
    if not picked:
        print_error("Selecione pelo menos um especialista.")
        return Nav.STAY
    chosen = tuple(t for t in available if t.id in picked)
    return {"multi": {"templates": chosen}, "current_step": StepId.REVIEW_AGENTS}


async def review_agents(ctx: WizardContext, state: WizardState) -> Outcome:
    templates = state.multi.templates
    print_header(f"{len(templates) + 1} agentes serão criados")
    principal = principal_template(ctx.templates)
    print_info(f"  Nível 1: {principal.name if principal else 'Agente Principal'}")
    for t in templates:
        print_info(f"  Nível 2: {t.name} ({t.area})")
    choice = await _select(
        "Continuar?", [Choice("Definir nomes", _CONTINUE), Choice("Voltar", _BACK)]
    )
    if choice is None:
        return Nav.CLOSE
    if choice == _BACK:
        return Nav.BACK
    return {"current_step": StepId.DEFINE_MULTI_NAMES}


async def define_multi_names(ctx: WizardContext, state: WizardState) -> Outcome:
    try:
        existing = [a.name for a in await ctx.agents.list_agents()]
    except ApiError as e:
        print_error(f"Não foi possível carregar os agentes existentes: {e}")
        existing = []

    overrides = dict(state.multi.name_overrides)
    default_principal = overrides.get(PRINCIPAL_KEY) or ctx.setting(
        "batch.principal_default_name", "Recepção - Agente Principal"
    )
    principal = await questionary.text(
        "Nome do agente principal:", default=default_principal, style=STYLE
    ).ask_async()
    if principal is None:
        return Nav.BACK
    for t in state.multi.templates:
        name = await questionary.text(
            f"Nome para {t.name} (vazio = {t.name}):",
            default=overrides.get(t.id, ""),
            style=STYLE,
        ).ask_async()
        if name is None:
            return Nav.BACK
        overrides[t.id] = name

    try:
        accepted = validate_multi_names(principal, state.multi.templates, overrides, existing)
    except NameValidationError as e:
        for key, message in e.errors.items():
            print_error(f"{key}: {message}")
        return Nav.STAY
    return {
        "multi": {"name_overrides": accepted, "batch_statuses": ()},
        "current_step": StepId.BATCH_CREATION,
    }


def _print_status(status: AgentCreationStatus) -> None:
    name = status.resolved_name or status.desired_name
    line = f"  {_STATE_SYMBOLS[status.state]} {name}"
    if status.error:
        line += f" ({status.error})"
    print_info(line)


def _coordinator(ctx: WizardContext, **kwargs) -> BatchCreationCoordinator:
    return BatchCreationCoordinator(
        ctx.agents,
        principal_name=ctx.setting("batch.principal_default_name"),
        id_resolution_delay=float(ctx.setting("batch.id_resolution_delay", 1.0)),
        **kwargs,
    )


async def batch_creation(ctx: WizardContext, state: WizardState) -> Outcome:
    multi = state.multi
    if not multi.batch_statuses:
        print_header("Criando agentes...")
        coordinator = _coordinator(
            ctx, on_progress=lambda s: _print_status(s) if s.done else None
        )
        result = await coordinator.run(multi.templates, multi.name_overrides)
        return {"multi": {"batch_statuses": tuple(result.statuses)}}

    statuses = list(multi.batch_statuses)
    result = BatchResult(principal=statuses[0], specialists=statuses[1:])
    print_header(f"{result.success_count} de {len(statuses)} agentes criados")
    for status in statuses:
        _print_status(status)

    if not result.can_continue:
        print_error("Nenhum agente foi criado.")
        choice = await _select(
            "O que deseja fazer?", [Choice("Voltar", _BACK), Choice("Fechar", "close")]
        )
        return Nav.BACK if choice == _BACK else Nav.CLOSE

    # No back from here once agents exist
    choice = await _select(
        "Continuar?", [Choice("Configurar agentes", _CONTINUE), Choice("Fechar", "close")]
    )
    if choice != _CONTINUE:
        return Nav.CLOSE
    try:
        created = await _coordinator(ctx).resolve_created_agents(result)
    except (IdentifierResolutionError, ApiError) as e:
        print_error(f"Erro ao buscar os agentes criados: {e}")
        return Nav.STAY
    return {
        "multi": {
            "created_agents": tuple(created),
            "editing_index": 0,
            "content_phase": ContentPhase.RULES,
            "draft": None,
        },
        "current_step": StepId.EDIT_MULTI_AGENT,
    }


async def edit_multi_agent(ctx: WizardContext, state: WizardState) -> Outcome:
    state = start_multi_agent(state, ctx.templates, ctx.embeds)
    multi = state.multi
    agent = multi.editing_agent
    if agent is None:
        print_error("Nenhum agente para editar.")
        return Nav.BACK
    print_header(
        f"Agente {multi.editing_index + 1} de {len(multi.created_agents)}: {agent.name}"
    )
    draft, action = await _edit_phase(
        ctx, multi.content_phase, multi.draft or AgentContent(), agent.id
    )
    edited = apply_updates(state, {"multi": {"draft": draft}})
    if action == _BACK:
        return graph.back(edited)
    if action is None:
        return Nav.CLOSE
    try:
        return await advance_multi(edited, ctx.content, ctx.embeds)
    except ContentSaveError as e:
        print_error(str(e))
        return edited


# -- content editing ---------------------------------------------------------


async def _edit_phase(
    ctx: WizardContext, phase: ContentPhase, content: AgentContent, agent_id: int | None
) -> tuple[AgentContent, str | None]:
    match phase:
        case ContentPhase.RULES:
            return await _edit_rules(content)
        case ContentPhase.STEPS:
            return await _edit_steps(ctx, content, agent_id)
        case ContentPhase.FAQ:
            return await _edit_faq(content)


async def _edit_rules(content: AgentContent) -> tuple[AgentContent, str | None]:
    while True:
        print_header("Regras")
        print_info(_preview(content.rules))
        choice = await _select(
            "Regras:",
            [
                Choice("Salvar e continuar", _CONTINUE),
                Choice("Reescrever regras", "edit"),
                Choice("Voltar", _BACK),
            ],
        )
        if choice != "edit":
            return content, choice
        text = await questionary.text(
            "Regras (Esc+Enter para terminar):",
            default=content.rules.plain_text(),
            multiline=True,
            style=STYLE,
        ).ask_async()
        if text is not None:
            content = AgentContent(
                rules=RichText.from_text(text), steps=content.steps, faq=content.faq
            )


async def _edit_steps(
    ctx: WizardContext, content: AgentContent, agent_id: int | None
) -> tuple[AgentContent, str | None]:
    steps = list(content.steps)
    while True:
        print_header("Roteiro")
        for s in steps:
            print_info(f"  {s.order}. {s.name}")
        choices = [Choice(f"Editar: {s.name}", str(i)) for i, s in enumerate(steps)]
        choices += [
            Choice("Adicionar etapa", "add"),
            Choice("Remover etapa", "remove"),
            Choice("Mover etapa", "move"),
            Choice("Salvar e continuar", _CONTINUE),
            Choice("Voltar", _BACK),
        ]
        choice = await _select("Roteiro:", choices)
        if choice in (None, _CONTINUE, _BACK):
            return AgentContent(content.rules, tuple(steps), content.faq), choice
        if choice == "add":
            steps = ordering.add_step(steps)
        elif choice == "remove" and steps:
            index = await _pick_index("Remover qual etapa?", [s.name for s in steps])
            if index is not None:
                steps = ordering.remove_step(steps, index)
        elif choice == "move" and steps:
            index = await _pick_index("Mover qual etapa?", [s.name for s in steps])
            target = await _pick_index("Para qual posição?", [str(s.order) for s in steps])
            if index is not None and target is not None:
                steps = ordering.move_step(steps, index, target)
        elif choice.isdigit():
            steps = await _edit_step(ctx, steps, int(choice), agent_id)


async def _pick_index(message: str, labels: list[str]) -> int | None:
    choice = await _select(message, [Choice(label, str(i)) for i, label in enumerate(labels)])
    return int(choice) if choice is not None else None


async def _edit_step(ctx: WizardContext, steps: list, index: int, agent_id: int | None) -> list:
    """Edit one step's name and body in a StepEditorSession."""
    session = StepEditorSession(
        ctx.embeds,
        ctx.reference,
        current_agent_id=agent_id,
        detector=TriggerDetector(
            trigger_char=ctx.setting("editor.trigger_char", "/"),
            palette_height=int(ctx.setting("editor.palette_height", 400)),
            margin=int(ctx.setting("editor.viewport_margin", 10)),
        ),
        media_store=ctx.media,
    )
    key = f"step-{index}"
    session.load(key, steps[index].body.to_html(ctx.embeds))
    session.focus(key)
    name = steps[index].name

    while True:
        print_header(name)
        print_info(_preview(session.document()))
        choice = await _select(
            "Editar etapa:",
            [
                Choice(f"Digitar texto ({session.detector.trigger_char} abre as ações)", "type"),
                Choice("Editar uma ação", "click"),
                Choice("Inserir Situação/Mensagem", "situation"),
                Choice("Anexar mídia", "media"),
                Choice("Renomear etapa", "rename"),
                Choice("Concluir etapa", _CONTINUE),
            ],
        )
        if choice in (None, _CONTINUE):
            return ordering.update_step(steps, index, name=name, body=session.document())
        if choice == "type":
            text = await questionary.text("Texto:", style=STYLE).ask_async()
            if text:
                await session.type_text(text)
                await _run_palette(session)
        elif choice == "click":
            tokens = [e.token for _, e in session.document().embeds() if isinstance(e, DecisionEmbed)]
            if not tokens:
                print_info("Nenhuma ação nesta etapa.")
                continue
            picked = await _pick_index("Qual ação?", [render_label(t) for t in tokens])
            if picked is not None and await session.click_token(key, encode(tokens[picked])):
                await _run_palette(session)
        elif choice == "situation":
            session.insert_situation_template()
        elif choice == "media":
            raw = await questionary.path("Arquivo:", style=STYLE).ask_async()
            if raw:
                try:
                    await session.upload_media(Path(raw).expanduser())
                except (ApiError, OSError) as e:
                    print_error(f"Erro ao enviar arquivo: {e}")
        elif choice == "rename":
            new_name = await questionary.text("Nome da etapa:", default=name, style=STYLE).ask_async()
            if new_name and new_name.strip():
                name = new_name.strip()


async def _run_palette(session: StepEditorSession) -> None:
    palette = session.palette
    while palette.is_open:
        entries = palette.visible()
        if palette.page == PalettePage.COMMANDS:
            message = "Escolha uma ação:"
            labels = [e.label for e in entries]
        else:
            if palette.error:
                print_error(f"Erro ao carregar opções: {palette.error}")
            if palette.choosing_funnel:
                message = "Escolha o funil:"
            elif palette.funnel is not None:
                message = f"Escolha o estágio ({palette.funnel.name}):"
            else:
                message = "Escolha um item:"
            labels = [e.name for e in entries]
        choices = [Choice(label, str(i)) for i, label in enumerate(labels)]
        choices += [Choice("Buscar...", _SEARCH), Choice("Voltar", _BACK)]
        choice = await _select(message, choices)
        if choice is None or choice == _BACK:
            palette.back()
        elif choice == _SEARCH:
            term = await questionary.text("Buscar:", default=palette.search, style=STYLE).ask_async()
            palette.set_search(term or "")
        else:
            entry = entries[int(choice)]
            if isinstance(entry, Command):
                await palette.choose_command(entry.kind)
            else:
                await palette.choose_item(entry)


async def _edit_faq(content: AgentContent) -> tuple[AgentContent, str | None]:
    faq = list(content.faq)
    while True:
        print_header("Perguntas frequentes")
        for f in faq:
            print_info(f"  {f.order}. {f.question or '(sem pergunta)'}")
        choices = [Choice(f"Editar: {f.question or f.order}", str(i)) for i, f in enumerate(faq)]
        choices += [
            Choice("Adicionar pergunta", "add"),
            Choice("Remover pergunta", "remove"),
            Choice("Mover pergunta", "move"),
            Choice("Salvar e continuar", _CONTINUE),
            Choice("Voltar", _BACK),
        ]
        choice = await _select("FAQ:", choices)
        if choice in (None, _CONTINUE, _BACK):
            return AgentContent(content.rules, content.steps, tuple(faq)), choice
        if choice == "add":
            faq = ordering.add_faq(faq)
            choice = str(len(faq) - 1)
        elif choice == "remove" and faq:
            index = await _pick_index("Remover qual pergunta?", [f.question or str(f.order) for f in faq])
            if index is not None:
                faq = ordering.remove_faq(faq, index)
            continue
        elif choice == "move" and faq:
            index = await _pick_index("Mover qual pergunta?", [f.question or str(f.order) for f in faq])
            target = await _pick_index("Para qual posição?", [str(f.order) for f in faq])
            if index is not None and target is not None:
                faq = ordering.move_faq(faq, index, target)
            continue
        if not choice.isdigit():
            continue
        index = int(choice)
        question = await questionary.text(
            "Pergunta:", default=faq[index].question or "", style=STYLE
        ).ask_async()
        answer = await questionary.text(
            "Resposta:", default=faq[index].answer.plain_text(), multiline=True, style=STYLE
        ).ask_async()
        if question is not None and answer is not None:
            faq = ordering.update_faq(
                faq, index, question=question.strip() or None, answer=RichText.from_text(answer)
            )


# -- dispatch ----------------------------------------------------------------

_SCREENS: dict[StepId, Screen] = {
    StepId.SELECT_MODE: select_mode,
    StepId.SELECT_CREATION_TYPE: select_creation_type,
    StepId.SELECT_TEMPLATE: select_template,
    StepId.DEFINE_NAME: define_name,
    StepId.EDIT_RULES: edit_single_content,
    StepId.EDIT_STEPS: edit_single_content,
    StepId.EDIT_FAQ: edit_single_content,
    StepId.SELECT_TEMPLATES: select_templates,
    StepId.REVIEW_AGENTS: review_agents,
    StepId.DEFINE_MULTI_NAMES: define_multi_names,
    StepId.BATCH_CREATION: batch_creation,
    StepId.EDIT_MULTI_AGENT: edit_multi_agent,
    StepId.FINAL_CONFIRMATION: final_confirmation,
}


def screen_for(state: WizardState) -> Screen:
    """Screen for the current step; steps without one get the placeholder."""
    if state.current_step == StepId.CREATION_CONFIRM:
        return creation_confirm if state.mode == WizardMode.SINGLE else not_implemented
    return _SCREENS.get(state.current_step, not_implemented)
