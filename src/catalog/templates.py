"""Per-area task templates used when generating a phase catalog.

Each area has twelve templates in a fixed order; the position of a template
becomes the task's order_index and therefore its week. Content is static.
"""

from typing import Dict, List
from dataclasses import dataclass


@dataclass(frozen=True)
class TaskTemplate:
    """A task every member of an area receives each phase."""
    title: str
    description: str
    has_leader: bool = False
    # Completion must carry an impact measurement
    requires_impact: bool = False


def _tpl(title: str, description: str, has_leader: bool = False, requires_impact: bool = False) -> TaskTemplate:
    return TaskTemplate(title, description, has_leader, requires_impact)


TASK_TEMPLATES_BY_AREA: Dict[str, List[TaskTemplate]] = {
    "direccion": [
        _tpl("Coordinar reunión semanal equipo completo", "Organizar y liderar reunión semanal con todo el equipo"),
        _tpl("Revisar métricas clave semanales", "Analizar KPIs principales del negocio"),
        _tpl("Definir KPIs por área y persona", "Establecer métricas específicas por rol"),
        _tpl("Preparar pitch investors", "Presentación para potenciales inversores"),
        _tpl("Establecer roadmap trimestral", "Planificar objetivos Q1", has_leader=True),
        _tpl("Revisar presupuesto mensual", "Control de gastos e ingresos", has_leader=True, requires_impact=True),
        _tpl("Coordinar con stakeholders", "Reuniones con partes interesadas clave"),
        _tpl("Optimizar estructura organizacional", "Revisar roles y responsabilidades", has_leader=True),
        _tpl("Desarrollar cultura empresarial", "Iniciativas de team building"),
        _tpl("Análisis competencia directa", "Investigar movimientos del mercado", has_leader=True),
        _tpl("Planificar escalado del negocio", "Estrategia de crecimiento"),
        _tpl("Revisar políticas internas", "Actualizar handbook y procedimientos", has_leader=True),
    ],
    "redes": [
        _tpl("Lanzar campaña Google Ads €300/mes", "Activar primera campaña paid en Google", requires_impact=True),
        _tpl("Crear contenido semanal Instagram", "5 posts + 10 stories", has_leader=True),
        _tpl("Optimizar perfil LinkedIn empresa", "Mejorar presencia profesional"),
        _tpl("Diseñar estrategia TikTok", "Plan de contenido viral", has_leader=True),
        _tpl("Analizar métricas redes sociales", "Report semanal engagement", has_leader=True, requires_impact=True),
        _tpl("Colaborar con 3 influencers", "Partnerships estratégicos"),
        _tpl("Crear email marketing campaign", "Newsletter quincenal", has_leader=True),
        _tpl("Optimizar SEO on-page", "Mejorar posicionamiento web"),
        _tpl("Producir video promocional", "Video 60 seg para RRSS", has_leader=True),
        _tpl("Gestionar comunidad online", "Responder comentarios y DMs"),
        _tpl("Implementar chatbot web", "Automatizar atención cliente", has_leader=True),
        _tpl("Crear guía de estilo visual", "Brand guidelines completas"),
    ],
    "operaciones": [
        _tpl("Validar proceso completo orden a entrega", "Asegurar proceso end-to-end funciona correctamente"),
        _tpl("Establecer margen mínimo 34% por cesta", "Optimizar costos para lograr margen objetivo", has_leader=True, requires_impact=True),
        _tpl("Optimizar logística última milla", "Reducir tiempo de entrega", has_leader=True),
        _tpl("Implementar sistema inventario", "Control stock en tiempo real"),
        _tpl("Negociar con proveedores clave", "Mejores precios y condiciones", has_leader=True, requires_impact=True),
        _tpl("Crear SOPs operaciones diarias", "Documentar procedimientos"),
        _tpl("Optimizar empaquetado productos", "Reducir costos materiales", has_leader=True),
        _tpl("Gestionar devoluciones eficientemente", "Proceso claro y rápido"),
        _tpl("Implementar quality control", "Inspección pre-envío", has_leader=True),
        _tpl("Coordinar con almacén externo", "Logística 3PL"),
        _tpl("Automatizar etiquetado envíos", "Integrar sistema", has_leader=True),
        _tpl("Reducir tiempo preparación pedidos", "Optimizar picking"),
    ],
    "leads": [
        _tpl("Optimizar web para conversión", "Mejorar tasa de conversión de la landing page", requires_impact=True),
        _tpl("Implementar A/B testing landing", "Probar 3 variantes diferentes", has_leader=True),
        _tpl("Crear lead magnet descargable", "eBook o guía gratuita"),
        _tpl("Optimizar formularios captación", "Reducir fricción", has_leader=True),
        _tpl("Implementar pop-ups estratégicos", "Exit intent y scroll", has_leader=True),
        _tpl("Crear secuencia email nurturing", "7 emails automatizados"),
        _tpl("Optimizar velocidad de carga web", "PageSpeed 90+", has_leader=True),
        _tpl("Implementar live chat proactivo", "Asistencia en tiempo real"),
        _tpl("Crear calculadora ROI interactiva", "Tool de conversión", has_leader=True),
        _tpl("Optimizar CTAs principales", "Copywriting persuasivo"),
        _tpl("Implementar remarketing pixel", "Tracking completo", has_leader=True),
        _tpl("Crear testimonios en video", "Social proof potente"),
    ],
    "ventas": [
        _tpl("Captar primeros 5 clientes B2B", "Conseguir primeros clientes corporativos", requires_impact=True),
        _tpl("Crear propuesta comercial estándar", "Deck de ventas profesional", has_leader=True),
        _tpl("Implementar CRM para seguimiento", "Pipeline de ventas organizado"),
        _tpl("Realizar 20 cold calls semanales", "Prospección activa", has_leader=True),
        _tpl("Cerrar 3 demos con prospects", "Presentaciones producto", has_leader=True, requires_impact=True),
        _tpl("Crear secuencia follow-up", "Email automation post-demo"),
        _tpl("Negociar condiciones especiales corporativas", "Pricing B2B", has_leader=True),
        _tpl("Implementar programa referidos", "Incentivos clientes"),
        _tpl("Crear case studies clientes", "Success stories", has_leader=True),
        _tpl("Asistir a 2 eventos networking", "Generar leads presenciales"),
        _tpl("Optimizar proceso onboarding clientes", "Primera experiencia", has_leader=True),
        _tpl("Implementar upselling estratégico", "Aumentar ticket medio", requires_impact=True),
    ],
    "analiticas": [
        _tpl("Crear dashboard tiempo real Looker", "Dashboard con métricas en vivo"),
        _tpl("Implementar tracking eventos GA4", "Analytics avanzado", has_leader=True),
        _tpl("Crear reportes automáticos semanales", "Email con KPIs clave"),
        _tpl("Analizar embudo de conversión", "Identificar drop-offs", has_leader=True, requires_impact=True),
        _tpl("Implementar cohort analysis", "Retención por cohortes", has_leader=True),
        _tpl("Crear predicción de ventas", "Modelo forecasting"),
        _tpl("Optimizar atribución marketing", "Multi-touch attribution", has_leader=True),
        _tpl("Implementar product analytics", "Mixpanel o Amplitude"),
        _tpl("Crear segmentación clientes", "RFM analysis", has_leader=True),
        _tpl("Analizar customer lifetime value", "CLV por segmento", requires_impact=True),
        _tpl("Implementar alertas automáticas", "Anomalías en métricas", has_leader=True),
        _tpl("Crear visualizaciones ejecutivas", "Dashboards directivos"),
    ],
    "cumplimiento": [
        _tpl("Documentar procesos clave", "SOPs de procesos principales"),
        _tpl("Implementar RGPD completo", "Compliance protección datos", has_leader=True),
        _tpl("Crear política de privacidad", "Legal y términos"),
        _tpl("Auditar seguridad sistemas", "Pentest y vulnerabilidades", has_leader=True, requires_impact=True),
        _tpl("Implementar backup automático", "Datos protegidos", has_leader=True),
        _tpl("Crear manual empleado", "Handbook completo"),
        _tpl("Implementar control accesos", "Permisos granulares", has_leader=True),
        _tpl("Revisar contratos proveedores", "Legal review", requires_impact=True),
        _tpl("Crear política anti-fraude", "Prevención y detección", has_leader=True),
        _tpl("Implementar logs auditoría", "Tracking cambios"),
        _tpl("Certificar ISO 27001", "Seguridad información", has_leader=True),
        _tpl("Crear plan contingencia", "Disaster recovery"),
    ],
    "innovacion": [
        _tpl("Testar 3 ideas nuevas producto/canal", "Validar rápidamente nuevas ideas", requires_impact=True),
        _tpl("Implementar programa beta testers", "Early adopters feedback", has_leader=True),
        _tpl("Crear MVP nueva funcionalidad", "Prototipo rápido"),
        _tpl("Analizar tendencias mercado emergentes", "Research innovación", has_leader=True),
        _tpl("Implementar design thinking workshop", "Sesión ideación equipo", has_leader=True),
        _tpl("Testar modelo suscripción", "Recurring revenue", requires_impact=True),
        _tpl("Crear programa hackathon interno", "Ideas innovadoras", has_leader=True),
        _tpl("Implementar customer discovery", "20 entrevistas clientes"),
        _tpl("Testar marketplace modelo", "Platform economics", has_leader=True),
        _tpl("Crear laboratorio innovación", "Espacio experimentación"),
        _tpl("Implementar lean startup methodology", "Build-measure-learn", has_leader=True),
        _tpl("Explorar partnerships tecnológicos", "Colaboraciones estratégicas"),
    ],
}


def get_templates(area: str) -> List[TaskTemplate]:
    """Templates for an area in catalog order (empty for unknown areas)."""
    return list(TASK_TEMPLATES_BY_AREA.get(area, []))
